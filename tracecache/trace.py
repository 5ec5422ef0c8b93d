from __future__ import annotations
from pathlib import Path
from typing import List

from .errors import TraceFormatError
from .utils.logging import get_logger

logger = get_logger(__name__)


def read_trace(path: str | Path) -> List[str]:
    """
    Reads one address token per line. Blank lines are skipped; every other
    line must start with an `x` (or `0x`) prefix.
    """
    addresses: List[str] = []
    with open(path, 'r') as f:
        for line_number, raw in enumerate(f, start=1):
            line = raw.strip()
            if not line:
                continue
            if not line.lower().startswith(("x", "0x")):
                raise TraceFormatError(line_number, line)
            addresses.append(line)
    logger.info(f"Read {len(addresses)} addresses from {path}")
    return addresses
