import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Union

from rawcsv.types import FilePath

log = logging.getLogger(__name__)

CSV_SUFFIX = ".csv"


@dataclass
class Files:
    """Discovery found the root path; ``paths`` may be empty."""

    paths: List[Path] = field(default_factory=list)


@dataclass
class NotFound:
    """The root path handed to discovery does not exist."""

    root: Path


DiscoveryResult = Union[Files, NotFound]


def discover(root: FilePath) -> DiscoveryResult:
    """
    Find the CSV files to load under ``root``.

    A file path is returned as the only candidate. A directory is searched
    recursively for files whose name ends in ``.csv`` (case-sensitive);
    results are sorted for a stable load order.

    Args:
        root: A CSV file or a directory.

    Returns:
        `Files` with the matching paths, or `NotFound` if ``root`` does not exist.
    """
    root_path = Path(root)
    if not root_path.exists():
        log.debug(f"Discovery root does not exist: {root_path}")
        return NotFound(root=root_path)
    if root_path.is_file():
        return Files(paths=[root_path])

    paths = sorted(
        p for p in root_path.rglob("*") if p.is_file() and p.name.endswith(CSV_SUFFIX)
    )
    log.info(f"Discovered {len(paths)} CSV file(s) under {root_path}")
    return Files(paths=paths)
