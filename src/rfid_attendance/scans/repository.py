from __future__ import annotations

from typing import Protocol, Sequence

from .model import ScannedId


class ScanRepository(Protocol):
    def list_unprocessed(self) -> Sequence[ScannedId]:
        """Pending reads, earliest first."""

        raise NotImplementedError

    def mark_processed(self, rfid: str) -> None:
        raise NotImplementedError
