from __future__ import annotations

import logging
import sys
from pathlib import Path
from typing import Optional, Union

_FORMAT = "%(asctime)s.%(msecs)03d %(levelname)s %(name)s: %(message)s"
_DATEFMT = "%Y-%m-%d %H:%M:%S"


class _ThirdPartyFilter(logging.Filter):
    """Keep tracker logs; only let other libraries through at WARNING+."""

    def filter(self, record: logging.LogRecord) -> bool:
        if record.name.startswith("tracker.") or record.name == "tracker":
            return True
        return record.levelno >= logging.WARNING


def setup_logging(
    level: Union[int, str] = logging.INFO,
    log_dir: Optional[Union[str, Path]] = None,
) -> None:
    """Configure root logging once.

    Console goes to stderr. When ``log_dir`` is given everything is also
    written to ``<log_dir>/tracker.log``. Pre-existing root handlers are
    removed so Streamlit reruns do not stack duplicates.
    """
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            level = logging.INFO

    root = logging.getLogger()
    root.setLevel(level)
    for h in list(root.handlers):
        root.removeHandler(h)
        h.close()

    fmt = logging.Formatter(fmt=_FORMAT, datefmt=_DATEFMT)

    ch = logging.StreamHandler(sys.stderr)
    ch.setLevel(level)
    ch.setFormatter(fmt)
    ch.addFilter(_ThirdPartyFilter())
    root.addHandler(ch)

    if log_dir:
        path = Path(log_dir)
        path.mkdir(parents=True, exist_ok=True)
        fh = logging.FileHandler(str(path / "tracker.log"), encoding="utf-8")
        fh.setLevel(logging.DEBUG)
        fh.setFormatter(fmt)
        root.addHandler(fh)

    logging.captureWarnings(True)
