from __future__ import annotations

import logging
import os
import traceback
from typing import Optional


def configure_logging(level: Optional[str] = None) -> None:
    root_logger = logging.getLogger()
    if root_logger.handlers:
        return
    level_name = (level or os.environ.get("SCHEMAGRAPH_LOG_LEVEL", "WARNING")).upper()
    logging.basicConfig(
        level=getattr(logging, level_name, logging.WARNING),
        format="%(levelname)s %(name)s: %(message)s",
    )


def format_exception_compact(exc: BaseException, context: Optional[str] = None) -> str:
    tb = traceback.TracebackException.from_exception(exc)
    exc_name = type(exc).__name__
    header = f"{context}: {exc_name}: {exc}" if context else f"{exc_name}: {exc}"
    lines: list[str] = [header]

    frames = list(tb.stack)
    top_n, bottom_m = 3, 2
    if len(frames) > top_n + bottom_m:
        kept = frames[:top_n] + frames[-bottom_m:]
        elided = len(frames) - len(kept)
    else:
        kept = frames
        elided = 0
    for frame in kept:
        filename = os.path.basename(frame.filename)
        lines.append(f"    at {frame.name}({filename}:{frame.lineno})")
    if elided:
        lines.append(f"    ... {elided} frames elided")

    cause = exc.__cause__
    while cause is not None:
        lines.append(f"  caused by {type(cause).__name__}: {cause}")
        cause = cause.__cause__
    return "\n".join(lines)
