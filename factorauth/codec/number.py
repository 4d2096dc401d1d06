"""
Radix-32 encoding for unsigned 32-bit integers.

Every factor and permission id in a compact policy string is written with
this codec. Symbols ``0``-``9`` stand for 0-9 and ``a``-``v`` for 10-31,
most significant symbol first. Decoding is case-insensitive, encoding
always produces lowercase.
"""

import operator
from typing import Any

from ..errors import (
    EmptyInputError,
    InvalidCharacterError,
    NullInputError,
    ValueOverflowError,
)


ALPHABET = "0123456789abcdefghijklmnopqrstuv"
RADIX = len(ALPHABET)
MAX_VALUE = 0xFFFFFFFF
PRECOMPUTED_LIMIT = 1024

_DIGITS = {symbol: index for index, symbol in enumerate(ALPHABET)}
_DIGITS.update({symbol.upper(): index for index, symbol in enumerate(ALPHABET)})


def _to_symbols(value: int) -> str:
    if value == 0:
        return ALPHABET[0]

    symbols = []
    while value > 0:
        value, chunk = divmod(value, RADIX)
        symbols.append(ALPHABET[chunk])

    return ''.join(reversed(symbols))


_PRECOMPUTED = tuple(_to_symbols(value) for value in range(PRECOMPUTED_LIMIT))


def encode_number(value: Any) -> str:
    """
    Encode an unsigned 32-bit integer as a radix-32 string.

    Args:
        value: An int or any object implementing ``__index__`` (IntEnum members)

    Returns:
        str: Lowercase radix-32 representation, ``"0"`` for zero

    Raises:
        NullInputError: If value is None
        TypeError: If value is not an integer
        ValueOverflowError: If value is negative or above MAX_VALUE
    """
    if value is None:
        raise NullInputError("value")

    if isinstance(value, bool):
        raise TypeError("Expected an integer, got bool")

    try:
        number = operator.index(value)
    except TypeError:
        raise TypeError(f"Expected an integer, got {type(value).__name__}") from None

    if number < 0 or number > MAX_VALUE:
        raise ValueOverflowError(
            f"Value {number} does not fit into a 32-bit unsigned integer",
            value=number
        )

    if number < PRECOMPUTED_LIMIT:
        return _PRECOMPUTED[number]

    return _to_symbols(number)


def decode_number(text: str) -> int:
    """
    Decode a radix-32 string into an unsigned 32-bit integer.

    Raises:
        NullInputError: If text is None
        EmptyInputError: If text is empty
        InvalidCharacterError: If text contains a symbol outside the alphabet
        ValueOverflowError: If the value exceeds MAX_VALUE
    """
    if text is None:
        raise NullInputError("text")

    if not text:
        raise EmptyInputError()

    result = 0
    for position, symbol in enumerate(text):
        digit = _DIGITS.get(symbol)
        if digit is None:
            raise InvalidCharacterError(symbol, position)

        result = result * RADIX + digit
        if result > MAX_VALUE:
            raise ValueOverflowError(
                f"Decoded value of {text!r} does not fit into a 32-bit unsigned integer",
                details={'text': text}
            )

    return result
