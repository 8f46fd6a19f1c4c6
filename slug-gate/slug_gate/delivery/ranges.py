"""
Range Parsing
=============
Single-range ``Range: bytes=...`` support for direct streaming.

Rules:
- ``-N``  last min(N, size) bytes, N >= 1
- ``N-``  from N to the end
- ``N-M`` N through min(M, size - 1)
- ``-``   last byte
Anything else, multiple ranges, ``M < N`` or ``N >= size`` is unsatisfiable.
"""

import re

from ..errors import RangeNotSatisfiableError
from .models import ByteRange

_DIGITS = re.compile(r"[0-9]+")


def _unsatisfiable(reason: str, size: int) -> RangeNotSatisfiableError:
    return RangeNotSatisfiableError(reason, file_size=size)


def _saturating_int(digits: str, size: int) -> int:
    """Decimal digits as an int, capped at ``size``."""
    digits = digits.lstrip("0") or "0"
    if len(digits) > len(str(size)):
        return size
    return min(int(digits), size)


def parse_range_header(header: str, size: int) -> ByteRange:
    """
    Parse a Range header against a file of ``size`` bytes.

    Raises:
        RangeNotSatisfiableError: For every malformed or unsatisfiable range
    """
    unit, sep, range_set = (header or "").partition("=")
    if not sep or unit.strip().lower() != "bytes":
        raise _unsatisfiable("unsupported range unit", size)

    range_set = range_set.strip()
    if not range_set:
        raise _unsatisfiable("empty range", size)
    if "," in range_set:
        raise _unsatisfiable("multiple ranges", size)
    if size <= 0:
        raise _unsatisfiable("empty file", size)

    if range_set == "-":
        return ByteRange(start=size - 1, end=size - 1, size=size)

    start_part, sep, end_part = range_set.partition("-")
    if not sep:
        raise _unsatisfiable("missing range separator", size)
    start_part = start_part.strip()
    end_part = end_part.strip()

    if start_part == "":
        if not _DIGITS.fullmatch(end_part):
            raise _unsatisfiable("malformed suffix range", size)
        suffix_length = _saturating_int(end_part, size)
        if suffix_length < 1:
            raise _unsatisfiable("zero-length suffix range", size)
        return ByteRange(start=size - suffix_length, end=size - 1, size=size)

    if not _DIGITS.fullmatch(start_part):
        raise _unsatisfiable("malformed range start", size)
    start = _saturating_int(start_part, size)
    if start >= size:
        raise _unsatisfiable("range start beyond end of file", size)

    if end_part == "":
        end = size - 1
    else:
        if not _DIGITS.fullmatch(end_part):
            raise _unsatisfiable("malformed range end", size)
        end = _saturating_int(end_part, size)
        if end < start:
            raise _unsatisfiable("range end before start", size)
        end = min(end, size - 1)

    return ByteRange(start=start, end=end, size=size)
