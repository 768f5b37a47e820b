from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Union

# Basic Types
FilePath = Union[Path, str]


@dataclass
class LoadReport:
    """
    Represents the result of loading one CSV file.

    Attributes:
        source: The CSV file the rows were read from.
        table_name: The table that was (re)created for the file.
        rows_inserted: Number of data rows the storage engine accepted.
        rows_failed: Number of data rows that were rejected or malformed.
    """

    source: Path
    table_name: str
    rows_inserted: int = 0
    rows_failed: int = 0


@dataclass
class BatchReport:
    """
    Represents the result of loading every file found under a root path.

    Attributes:
        reports: One `LoadReport` per file whose table was created, in load order.
        failures: Files whose load was aborted, mapped to the error message.
    """

    reports: List[LoadReport] = field(default_factory=list)
    failures: Dict[str, str] = field(default_factory=dict)

    @property
    def rows_inserted(self) -> int:
        return sum(r.rows_inserted for r in self.reports)

    @property
    def rows_failed(self) -> int:
        return sum(r.rows_failed for r in self.reports)

    @property
    def ok(self) -> bool:
        return not self.failures
