import pytest

from rawcsv.errors import HeaderFormatError
from rawcsv.header import DEFAULT_OVERRIDES, parse_header_cell


def test_annotated_cell():
    spec = parse_header_cell("Amount|type:int|length:11|not null:false", False)
    assert spec.name == "_amount"
    assert spec.overrides == {"type": "int", "length": "11", "not null": "false"}
    assert spec.indexed is False


def test_plain_cell_gets_default_shape():
    spec = parse_header_cell("Customer Name", False)
    assert spec.name == "_customer_name"
    assert spec.overrides == DEFAULT_OVERRIDES
    assert spec.overrides == {
        "type": "varchar",
        "length": "255",
        "not null": "true",
        "default": "",
        "description": "",
    }


def test_default_shape_is_a_copy():
    spec = parse_header_cell("Name", True)
    spec.overrides["type"] = "text"
    assert DEFAULT_OVERRIDES["type"] == "varchar"


@pytest.mark.parametrize(
    "cell, is_first, expected",
    [
        ("Id", True, True),
        ("Id|index:false", True, False),
        ("Id|index:FALSE", True, False),
        ("Id|index:TRUE", True, True),
        ("Id|index:true", True, True),
        ("City", False, False),
        ("City|index:TRUE", False, True),
        ("City|index:true", False, False),
        ("City|index:FALSE", False, False),
        ("City|Index:TRUE", False, True),
        ("City|type:varchar|index:TRUE|length:40", False, True),
    ],
)
def test_index_policy(cell: str, is_first: bool, expected: bool):
    assert parse_header_cell(cell, is_first).indexed is expected


def test_index_only_cell_uses_default_shape():
    spec = parse_header_cell("City|index:TRUE", False)
    assert spec.overrides == DEFAULT_OVERRIDES
    assert "index" not in spec.overrides


def test_value_split_on_first_colon():
    spec = parse_header_cell("Opens|type:varchar|default:09:30", False)
    assert spec.overrides["default"] == "09:30"


def test_unknown_keys_kept_verbatim():
    spec = parse_header_cell("Notes|Type:text|collation:NOCASE", False)
    assert spec.overrides == {"Type": "text", "collation": "NOCASE"}


def test_keys_and_values_are_trimmed():
    spec = parse_header_cell("Amount| type : int ", False)
    assert spec.overrides == {"type": "int"}


def test_segment_without_colon_is_an_error():
    with pytest.raises(HeaderFormatError, match="key:value"):
        parse_header_cell("City|varchar", False)
