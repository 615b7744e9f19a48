from __future__ import annotations
from pathlib import Path
from typing import Iterable, Iterator, List

from ..errors import TraceFormatError
from .record import AccessKind, AccessRecord

_KINDS = {kind.value: kind for kind in AccessKind}


def address_fits(address: int, address_width: int) -> bool:
    return 0 <= address < (1 << address_width)


def parse_line(text: str, line_no: int = 0, address_width: int = 64) -> AccessRecord:
    """Parses one trace line of the form ``<op> <hex address>,<size>``.

    >>> parse_line("S 7ff0005b8,4")
    AccessRecord(kind=<AccessKind.STORE: 'S'>, address=34342962616, size=4)
    """
    line = text.strip()
    op, sep, rest = line.partition(" ")
    if not sep or "," not in rest:
        raise TraceFormatError(f"Input format error: {line!r}", line_no, text)

    kind = _KINDS.get(op)
    if kind is None:
        raise TraceFormatError(f"Invalid operator: {op!r}", line_no, text)

    addr_str, _, size_str = rest.partition(",")
    addr_str, size_str = addr_str.strip(), size_str.strip()

    try:
        address = int(addr_str, 16)
    except ValueError:
        raise TraceFormatError(f"Invalid address: {addr_str!r}", line_no, text) from None
    if not address_fits(address, address_width):
        raise TraceFormatError(
            f"Address {addr_str} does not fit in {address_width} bits", line_no, text)

    if not size_str.isdigit():
        raise TraceFormatError(f"Invalid size: {size_str!r}", line_no, text)

    return AccessRecord(kind, address, int(size_str))


def iter_trace(lines: Iterable[str], address_width: int = 64) -> Iterator[AccessRecord]:
    """Lazily parses trace lines, skipping blank ones."""
    for line_no, text in enumerate(lines, start=1):
        if not text.strip():
            continue
        yield parse_line(text, line_no, address_width)


def read_trace(path: str | Path, address_width: int = 64) -> List[AccessRecord]:
    """Reads and parses a whole trace file."""
    with open(path, "r") as f:
        return list(iter_trace(f, address_width))
