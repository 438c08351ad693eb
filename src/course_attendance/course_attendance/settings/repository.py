from __future__ import annotations

from typing import Optional, Protocol, Sequence

from .model import SystemSetting


class SystemSettingRepository(Protocol):
    def get(self, key: str) -> Optional[SystemSetting]:
        raise NotImplementedError

    def list_all(self) -> Sequence[SystemSetting]:
        raise NotImplementedError

    def upsert(self, *, key: str, value: str, description: Optional[str] = None) -> SystemSetting:
        raise NotImplementedError
