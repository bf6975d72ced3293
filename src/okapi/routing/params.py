"""Typed path captures.

``/user/{id:int}`` captures ``id`` as an ``int``; a segment that does
not fit the converter's pattern, or whose value the converter rejects,
makes the rule not match at all.
"""

from collections.abc import Callable

INT_MIN = -(2**31)
INT_MAX = 2**31 - 1


def _int32(text: str) -> int:
    value = int(text)
    if not INT_MIN <= value <= INT_MAX:
        msg = f"{text!r} is outside the 32-bit integer range"
        raise ValueError(msg)
    return value


# converter name -> (regex, converter)
CONVERTERS: dict[str, tuple[str, Callable[[str], str | int | float]]] = {
    "str": (r"[^/]+", str),
    "int": (r"-?\d+", _int32),
    "float": (r"-?\d+(?:\.\d+)?", float),
    "path": (r".+", str),
}


def convert_param(value: str, param_type: str) -> str | int | float:
    """Convert a captured segment to the converter's Python type.

    Raises ``ValueError`` if the text does not convert (including ``int``
    values outside the signed 32-bit range) and ``KeyError`` for an
    unknown converter name.
    """
    _, converter = CONVERTERS[param_type]
    return converter(value)
