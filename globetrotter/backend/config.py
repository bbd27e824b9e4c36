"""Configuration helpers for backend runtime."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass


@dataclass(frozen=True)
class BackendSettings:
    host: str
    port: int
    public_url: str
    outbox_size: int
    log_level: str


def load_settings() -> BackendSettings:
    port_raw = os.getenv("GLOBETROTTER_PORT", "8000")
    outbox_raw = os.getenv("GLOBETROTTER_OUTBOX_SIZE", "256")
    return BackendSettings(
        host=os.getenv("GLOBETROTTER_HOST", "127.0.0.1"),
        port=int(port_raw),
        public_url=os.getenv("GLOBETROTTER_PUBLIC_URL", "http://127.0.0.1:8000").rstrip("/"),
        outbox_size=int(outbox_raw),
        log_level=os.getenv("GLOBETROTTER_LOG_LEVEL", "INFO").upper(),
    )


def configure_logging(level: str) -> None:
    """Install a basic root handler once; later calls only adjust the level."""
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    logging.getLogger("globetrotter").setLevel(level)
