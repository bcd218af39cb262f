from __future__ import annotations

import logging
import sys

_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def configure_logging(level: str | int = "INFO") -> None:
    """Send all application logs to stdout.

    Safe to call more than once: the handler is only installed the first time.
    """
    root = logging.getLogger()
    if not any(getattr(h, "_qr_attendance", False) for h in root.handlers):
        console_handler = logging.StreamHandler(stream=sys.stdout)
        console_handler.setFormatter(logging.Formatter(_FORMAT))
        console_handler._qr_attendance = True
        root.addHandler(console_handler)

    logging.getLogger("qr_attendance").setLevel(level)
