from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class ScannedId:
    """Raw card read as left by the RFID reader, keyed by card id."""

    rfid: str
    timestamp: int
    processed: bool = False
