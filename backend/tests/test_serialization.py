"""
Tests for the wide-integer codec
"""
import json

from scopegrid.core.serialization import (
    MAX_SAFE_INTEGER, encode_wide_integers, restore_wide_integers, wide_int_json,
)


class TestEncode:
    def test_boundary(self):
        assert encode_wide_integers(MAX_SAFE_INTEGER) == MAX_SAFE_INTEGER
        assert encode_wide_integers(MAX_SAFE_INTEGER + 1) == "9007199254740992"
        assert encode_wide_integers(-(MAX_SAFE_INTEGER + 1)) == "-9007199254740992"

    def test_applies_throughout_nested_structures(self):
        payload = {
            "totalRecords": 3,
            "data": {"tech": [{"traffic": 2 ** 60, "_count": 1}]},
            "rows": [(1, 2 ** 63 - 1)],
        }
        encoded = encode_wide_integers(payload)
        assert encoded["totalRecords"] == 3
        assert encoded["data"]["tech"][0] == {"traffic": str(2 ** 60), "_count": 1}
        assert encoded["rows"] == [[1, "9223372036854775807"]]

    def test_booleans_and_floats_are_untouched(self):
        assert encode_wide_integers({"a": True, "b": 1e20}) == {"a": True, "b": 1e20}


class TestRestore:
    def test_restores_declared_columns_only(self):
        rows = [{"traffic": "1152921504606846976", "website": "12345"}]
        assert restore_wide_integers(rows, ["traffic"]) == [
            {"traffic": 2 ** 60, "website": "12345"},
        ]

    def test_restores_grouped_mapping(self):
        data = {"tech": [{"niche": "tech", "traffic": "-9007199254740993"}]}
        assert restore_wide_integers(data, {"traffic"}) == {
            "tech": [{"niche": "tech", "traffic": -(2 ** 53 + 1)}],
        }


def test_json_response_body_carries_strings():
    response = wide_int_json({"data": [{"phone_number": 2 ** 55}]})
    assert json.loads(response.body) == {"data": [{"phone_number": str(2 ** 55)}]}
