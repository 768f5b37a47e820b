import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Mapping, Optional, Sequence, Tuple

from rawcsv.errors import DuplicateColumnError, HeaderFormatError
from rawcsv.header import parse_header_cell

log = logging.getLogger(__name__)

ROW_ID_COLUMN = "__id"
DEFAULT_TEXT_LENGTH = 255

_TRUE_VALUES = {"true", "1", "yes"}
_FALSE_VALUES = {"false", "0", "no"}


class ColumnKind(str, Enum):
    """Column kinds a header cell may declare with ``type:<kind>``."""

    SERIAL = "serial"
    INT = "int"
    FLOAT = "float"
    NUMERIC = "numeric"
    VARCHAR = "varchar"
    CHAR = "char"
    TEXT = "text"
    BLOB = "blob"
    DATE = "date"
    DATETIME = "datetime"

    @property
    def takes_length(self) -> bool:
        return self in (ColumnKind.VARCHAR, ColumnKind.CHAR)


@dataclass(frozen=True)
class ColumnSpec:
    """
    Definition of one table column.

    Attributes:
        name: Sanitized column name, unique within the table.
        kind: Recognized column kind.
        length: Declared length, only meaningful for sized kinds.
        not_null: Whether the column rejects NULL.
        default: Default value, or None for no default.
        description: Free-text description from the header.
        indexed: Whether a single-column index is created for the column.
        extra: Unrecognized header properties, passed through untouched.
    """

    name: str
    kind: ColumnKind = ColumnKind.VARCHAR
    length: Optional[int] = None
    not_null: bool = False
    default: Optional[str] = None
    description: str = ""
    indexed: bool = False
    extra: Mapping[str, str] = field(default_factory=dict)


@dataclass(frozen=True)
class TableSchema:
    """
    Table definition handed to a storage engine.

    ``columns`` always starts with the synthetic ``__id`` key, which is also the
    only member of ``primary_key``. ``indexes`` maps an index name to the
    columns it covers; every index is a single column named after that column.
    """

    name: str
    columns: Tuple[ColumnSpec, ...]
    primary_key: Tuple[str, ...] = (ROW_ID_COLUMN,)
    indexes: Mapping[str, Tuple[str, ...]] = field(default_factory=dict)

    @property
    def data_columns(self) -> Tuple[str, ...]:
        """Ordered names of the header-derived columns, without the row id."""
        return tuple(c.name for c in self.columns if c.name not in self.primary_key)

    def column(self, name: str) -> ColumnSpec:
        for col in self.columns:
            if col.name == name:
                return col
        raise KeyError(name)


ROW_ID_SPEC = ColumnSpec(
    name=ROW_ID_COLUMN,
    kind=ColumnKind.SERIAL,
    not_null=True,
    description="Primary Key: unique row ID.",
)


def _parse_bool(value: str, key: str, column: str) -> bool:
    lowered = value.strip().lower()
    if lowered in _TRUE_VALUES:
        return True
    if lowered in _FALSE_VALUES:
        return False
    raise HeaderFormatError(
        f"Invalid boolean '{value}' for '{key}' on column '{column}'."
    )


def column_from_overrides(
    name: str, overrides: Mapping[str, str], indexed: bool = False
) -> ColumnSpec:
    """
    Build a typed `ColumnSpec` from the raw properties of a header cell.

    Known keys (``type``, ``length``, ``not null``, ``default``, ``description``)
    are matched case-insensitively; anything else ends up in ``extra``.

    Raises:
        HeaderFormatError: For an unknown type, a bad length or a bad boolean.
    """
    kind = ColumnKind.VARCHAR
    length: Optional[int] = None
    not_null = False
    default: Optional[str] = None
    description = ""
    extra: Dict[str, str] = {}

    for key, value in overrides.items():
        normalized = key.strip().lower().replace("_", " ")
        if normalized == "type":
            try:
                kind = ColumnKind(value.strip().lower())
            except ValueError:
                known = ", ".join(k.value for k in ColumnKind)
                raise HeaderFormatError(
                    f"Unknown type '{value}' for column '{name}'. Known types: {known}."
                ) from None
        elif normalized == "length":
            try:
                length = int(value)
            except ValueError:
                raise HeaderFormatError(
                    f"Invalid length '{value}' for column '{name}'."
                ) from None
            if length < 0:
                raise HeaderFormatError(
                    f"Length for column '{name}' cannot be negative: {length}."
                )
        elif normalized == "not null":
            not_null = _parse_bool(value, key, name)
        elif normalized == "default":
            default = value
        elif normalized == "description":
            description = value
        else:
            extra[key] = value

    if kind.takes_length and length is None:
        length = DEFAULT_TEXT_LENGTH

    return ColumnSpec(
        name=name,
        kind=kind,
        length=length,
        not_null=not_null,
        default=default,
        description=description,
        indexed=indexed,
        extra=extra,
    )


def synthesize_schema(table_name: str, header_row: Sequence[str]) -> TableSchema:
    """
    Build the full table schema from a raw header row.

    Args:
        table_name: Name of the table to create.
        header_row: Raw header cells, in file order.

    Returns:
        A `TableSchema` whose first column is the synthetic ``__id`` key.

    Raises:
        HeaderFormatError: If the header is empty or a cell cannot be parsed.
        DuplicateColumnError: If two cells sanitize to the same column name.
    """
    if not header_row:
        raise HeaderFormatError(f"Header row for table '{table_name}' is empty.")

    columns = [ROW_ID_SPEC]
    seen = {ROW_ID_COLUMN: "<row id>"}
    indexes: Dict[str, Tuple[str, ...]] = {}

    for position, cell in enumerate(header_row):
        spec = parse_header_cell(cell, is_first_column=position == 0)
        if spec.name in seen:
            raise DuplicateColumnError(
                f"Header cell '{cell}' maps to column '{spec.name}', "
                f"which is already used by '{seen[spec.name]}' in table '{table_name}'."
            )
        seen[spec.name] = cell
        columns.append(column_from_overrides(spec.name, spec.overrides, spec.indexed))
        if spec.indexed:
            indexes[spec.name] = (spec.name,)

    log.debug(
        f"Synthesized schema for '{table_name}': {len(columns) - 1} data columns, "
        f"indexes on {list(indexes)}"
    )
    return TableSchema(
        name=table_name,
        columns=tuple(columns),
        primary_key=(ROW_ID_COLUMN,),
        indexes=indexes,
    )
