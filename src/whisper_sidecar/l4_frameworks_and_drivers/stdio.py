"""Reserve the process's stdout for protocol replies."""

from __future__ import annotations

import io
import os
import sys
from typing import TextIO


def reserve_protocol_stdout() -> TextIO:
    """Return a private writer on the original stdout and point fd 1 at stderr.

    Anything that later writes to fd 1 or ``sys.stdout`` (a stray print, a C
    library's fprintf) ends up on the diagnostic channel instead of
    interleaving with replies.
    """
    sys.stdout.flush()
    protocol_fd = os.dup(1)
    os.dup2(2, 1)
    sys.stdout = sys.stderr
    return os.fdopen(protocol_fd, 'w', encoding='utf-8', newline='\n')


def protocol_stdin() -> TextIO:
    """UTF-8 line reader on stdin; undecodable bytes are replaced rather than fatal.

    Only LF ends a line. A bare CR is JSON whitespace and stays inside the
    line; the CR of a CRLF ending is stripped by the loop.
    """
    return io.TextIOWrapper(sys.stdin.buffer, encoding='utf-8', errors='replace', newline='\n')
