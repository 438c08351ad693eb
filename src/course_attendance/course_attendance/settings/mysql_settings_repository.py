from __future__ import annotations

from typing import Optional, Sequence

from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone
from .model import SystemSetting
from .repository import SystemSettingRepository


def _to_setting(r: dict) -> SystemSetting:
    return SystemSetting(
        key=r["setting_key"],
        value=r["setting_value"],
        description=r.get("description") or "",
        updated_at=r.get("updated_at"),
    )


class MySQLSystemSettingRepository(SystemSettingRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get(self, key: str) -> Optional[SystemSetting]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "SELECT setting_key, setting_value, description, updated_at FROM system_settings WHERE setting_key=%s",
                (key,),
            )
            r = fetchone(cur)
            return _to_setting(r) if r else None

    def list_all(self) -> Sequence[SystemSetting]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "SELECT setting_key, setting_value, description, updated_at FROM system_settings ORDER BY setting_key"
            )
            return [_to_setting(r) for r in fetchall(cur)]

    def upsert(self, *, key: str, value: str, description: Optional[str] = None) -> SystemSetting:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO system_settings(setting_key, setting_value, description)
                VALUES(%s,%s,%s)
                ON DUPLICATE KEY UPDATE
                    setting_value=VALUES(setting_value),
                    description=COALESCE(VALUES(description), description)
                """,
                (key, value, description),
            )
            cur.execute(
                "SELECT setting_key, setting_value, description, updated_at FROM system_settings WHERE setting_key=%s",
                (key,),
            )
            return _to_setting(fetchone(cur))
