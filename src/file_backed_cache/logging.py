from __future__ import annotations

import logging


def configure_logging(level: str = "INFO") -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s - %(message)s",
    )
    # filelock logs every acquire/release at DEBUG.
    logging.getLogger("filelock").setLevel(logging.WARNING)
