import logging
from dataclasses import dataclass, field
from typing import Dict

from rawcsv.errors import HeaderFormatError
from rawcsv.identifiers import sanitize_identifier

log = logging.getLogger(__name__)

CELL_SEPARATOR = "|"
PROPERTY_SEPARATOR = ":"
INDEX_KEY = "index"

# Shape given to a column whose header cell carries no properties.
DEFAULT_OVERRIDES: Dict[str, str] = {
    "type": "varchar",
    "length": "255",
    "not null": "true",
    "default": "",
    "description": "",
}


@dataclass
class HeaderSpec:
    """
    Parsed form of one header cell.

    Attributes:
        name: Sanitized column name.
        overrides: Raw ``key -> value`` properties from the cell, excluding ``index``.
            Values are kept as strings; they are validated when the schema is built.
        indexed: Whether a single-column index should be created for the column.
    """

    name: str
    overrides: Dict[str, str] = field(default_factory=dict)
    indexed: bool = False


def parse_header_cell(cell: str, is_first_column: bool) -> HeaderSpec:
    """
    Parse a header cell of the form ``Name[|key:value]*``.

    The first column is indexed unless it carries ``index:false``. Any later
    column is indexed only with an exact ``index:TRUE``. Cells without
    properties get the default varchar shape from `DEFAULT_OVERRIDES`.

    Args:
        cell: Raw header cell text.
        is_first_column: True for the first cell of the header row.

    Returns:
        A `HeaderSpec` for the column.

    Raises:
        HeaderFormatError: If a property segment has no ``:`` separator.
    """
    raw_name, *segments = cell.split(CELL_SEPARATOR)
    name = sanitize_identifier(raw_name)

    overrides: Dict[str, str] = {}
    index_value = None
    for segment in segments:
        if PROPERTY_SEPARATOR not in segment:
            raise HeaderFormatError(
                f"Malformed property '{segment}' in header cell '{cell}': expected 'key:value'."
            )
        key, value = segment.split(PROPERTY_SEPARATOR, 1)
        key, value = key.strip(), value.strip()
        if key.lower() == INDEX_KEY:
            index_value = value
        else:
            overrides[key] = value

    if is_first_column:
        indexed = index_value is None or index_value.lower() != "false"
    else:
        indexed = index_value == "TRUE"

    if not overrides:
        overrides = dict(DEFAULT_OVERRIDES)

    log.debug(f"Parsed header cell '{cell}' as column '{name}' (indexed={indexed})")
    return HeaderSpec(name=name, overrides=overrides, indexed=indexed)
