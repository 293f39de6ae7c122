"""
Column letter codec.

Spreadsheet columns are numbered in bijective base-26: there is no zero
digit, so A=1 ... Z=26, AA=27 ... ZZ=702, AAA=703.
"""

import re
from typing import List, Union

from gridbatch.exceptions import AddressSyntaxError

_LETTERS_RE = re.compile(r"^[A-Za-z]+$")


def letters_to_index(letters: str) -> int:
    """Convert column letters to a 1-based column index (case-insensitive).

    Args:
        letters: Column letter(s), e.g. ``"A"``, ``"aa"``, ``"XFD"``

    Returns:
        1-based column index (A = 1, Z = 26, AA = 27)

    Raises:
        AddressSyntaxError: If ``letters`` is empty or contains non-letters
    """
    if not isinstance(letters, str) or not _LETTERS_RE.match(letters):
        raise AddressSyntaxError(f"Invalid column letters: {letters!r}")

    index = 0
    for char in letters.upper():
        index = index * 26 + (ord(char) - 64)
    return index


def index_to_letters(index: int) -> str:
    """Convert a 1-based column index to uppercase column letters.

    Args:
        index: Column number (1 = A, 27 = AA)

    Returns:
        Column letter(s)

    Raises:
        ValueError: If ``index`` is not a positive integer
    """
    if isinstance(index, bool) or not isinstance(index, int) or index < 1:
        raise ValueError(f"Column index must be a positive integer, got {index!r}")

    letters = ""
    while index > 0:
        index -= 1
        letters = chr(65 + (index % 26)) + letters
        index //= 26
    return letters


def column_range(start: Union[str, int], end: Union[str, int]) -> List[str]:
    """List the column letters of a contiguous span, in ascending order.

    Both endpoints may be letters or 1-based indices; reversed endpoints
    are accepted and produce the same ascending list.

    Example:
        >>> column_range("B", "D")
        ['B', 'C', 'D']
    """
    first = start if isinstance(start, int) else letters_to_index(start)
    last = end if isinstance(end, int) else letters_to_index(end)
    if first > last:
        first, last = last, first
    return [index_to_letters(i) for i in range(first, last + 1)]
