"""
Wide-Integer Codec

JSON consumers backed by IEEE-754 doubles silently round integers beyond
2**53 - 1. Every such integer leaving the service is rendered as a decimal
string; `restore_wide_integers` turns those strings back into ints for the
columns known to be BigInt.
"""
from typing import Any, Dict, Iterable

from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse

MAX_SAFE_INTEGER = 2 ** 53 - 1


def is_wide_integer(value: Any) -> bool:
    return (
        isinstance(value, int)
        and not isinstance(value, bool)
        and abs(value) > MAX_SAFE_INTEGER
    )


def encode_wide_integers(value: Any) -> Any:
    """Recursively replace out-of-range ints with their decimal string form."""
    if is_wide_integer(value):
        return str(value)
    if isinstance(value, dict):
        return {key: encode_wide_integers(item) for key, item in value.items()}
    if isinstance(value, (list, tuple)):
        return [encode_wide_integers(item) for item in value]
    return value


def _restore_row(row: Dict[str, Any], wide_columns: set) -> Dict[str, Any]:
    restored = {}
    for key, item in row.items():
        if key in wide_columns and isinstance(item, str) and item.lstrip("-").isdigit():
            restored[key] = int(item)
        else:
            restored[key] = item
    return restored


def restore_wide_integers(value: Any, wide_columns: Iterable[str]) -> Any:
    """Inverse of `encode_wide_integers` for row dicts (or nested lists/mappings of rows)."""
    columns = set(wide_columns)
    if isinstance(value, list):
        return [restore_wide_integers(item, columns) for item in value]
    if isinstance(value, dict):
        if any(key in columns for key in value):
            return _restore_row(value, columns)
        return {key: restore_wide_integers(item, columns) for key, item in value.items()}
    return value


def wide_int_json(content: Any, status_code: int = 200) -> JSONResponse:
    """JSON response with every out-of-range integer string-encoded."""
    return JSONResponse(status_code=status_code, content=encode_wide_integers(jsonable_encoder(content)))
