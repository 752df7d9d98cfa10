"""Extract the registry port from the child's diagnostic output."""

from __future__ import annotations

import re
from typing import Optional, Union

READY_PATTERN = re.compile(r"localhost:(?P<port>\d+)")

MIN_PORT = 1
MAX_PORT = 65535


def parse_port(chunk: Union[str, bytes, None]) -> Optional[int]:
    """Return the port announced in ``chunk`` or None.

    The ``localhost:<digits>`` marker may appear anywhere in the chunk.
    Never raises: undecodable bytes, empty input and out-of-range numbers
    all count as no signal.
    """
    if not chunk:
        return None

    if isinstance(chunk, (bytes, bytearray)):
        text = bytes(chunk).decode("utf-8", errors="replace")
    else:
        text = str(chunk)

    match = READY_PATTERN.search(text)
    if match is None:
        return None

    try:
        port = int(match.group("port"))
    except ValueError:
        return None

    if not MIN_PORT <= port <= MAX_PORT:
        return None
    return port


__all__ = ["READY_PATTERN", "parse_port"]
