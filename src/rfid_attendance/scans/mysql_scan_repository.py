from __future__ import annotations

from typing import Sequence

from ..database.connection import DatabaseConnection
from ..database.mysql_base import as_bool, db_cursor, fetchall
from .model import ScannedId
from .repository import ScanRepository


class MySQLScanRepository(ScanRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def list_unprocessed(self) -> Sequence[ScannedId]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT rfid, scanned_at, processed
                FROM scanned_ids
                WHERE processed=0
                ORDER BY scanned_at ASC
                """
            )
            return [
                ScannedId(rfid=str(r["rfid"]), timestamp=int(r["scanned_at"]), processed=as_bool(r["processed"]))
                for r in fetchall(cur)
            ]

    def mark_processed(self, rfid: str) -> None:
        # Upsert: the processor may mark a scan that arrived through the HTTP API and never hit this table.
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO scanned_ids(rfid, scanned_at, processed)
                VALUES(%s, 0, 1)
                ON DUPLICATE KEY UPDATE processed=1
                """,
                (rfid,),
            )
