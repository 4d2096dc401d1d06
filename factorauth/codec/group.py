"""
Comma-delimited lists of radix-32 integers.
"""

from typing import Iterable, List

from ..errors import NullInputError
from .number import encode_number, decode_number


ITEMS_DELIMITER = ","


def encode_group(values: Iterable[int]) -> str:
    """Encode integers in the given order, joined with commas."""
    if values is None:
        raise NullInputError("values")

    return ITEMS_DELIMITER.join(encode_number(value) for value in values)


def decode_group(text: str) -> List[int]:
    """
    Decode a comma-delimited list of radix-32 integers.

    The empty string decodes to an empty list. An empty field between two
    delimiters is not skipped: it fails like any other empty integer.
    """
    if text is None:
        raise NullInputError("text")

    if not text:
        return []

    return [decode_number(item) for item in text.split(ITEMS_DELIMITER)]
