from __future__ import annotations

import logging
from typing import Optional

from ..common.validators import require_non_empty
from ..core.constants import ATTENDANCE_ENTRY_SETTING
from ..core.exceptions import NotFoundError, PreconditionFailedError, ValidationError
from .model import SystemSetting
from .repository import SystemSettingRepository

logger = logging.getLogger(__name__)

_TRUE = {"1", "true", "yes", "on"}
_FALSE = {"0", "false", "no", "off"}

DEFAULT_SETTINGS = {
    ATTENDANCE_ENTRY_SETTING: ("true", "Controls whether faculty can take, modify or delete attendance"),
}


def _to_stored(value) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if value is None:
        raise ValidationError("Value is required")
    return str(value).strip()


class SystemSettingService:
    def __init__(self, settings: SystemSettingRepository):
        self._settings = settings

    def initialize_defaults(self) -> None:
        for key, (value, description) in DEFAULT_SETTINGS.items():
            if self._settings.get(key) is None:
                self._settings.upsert(key=key, value=value, description=description)
                logger.info("Initialized setting %s=%s", key, value)

    def list_all(self):
        return list(self._settings.list_all())

    def get(self, key: str) -> SystemSetting:
        setting = self._settings.get(require_non_empty(key, "Setting key"))
        if not setting:
            raise NotFoundError(f'Setting "{key}" not found')
        return setting

    def update(self, key: str, value, description: Optional[str] = None) -> SystemSetting:
        key = require_non_empty(key, "Setting key")
        setting = self._settings.upsert(key=key, value=_to_stored(value), description=description)
        logger.info("Setting %s updated to %s", key, setting.value)
        return setting

    def is_enabled(self, key: str, *, default: bool = True) -> bool:
        setting = self._settings.get(key)
        if setting is None:
            return default
        v = setting.value.strip().lower()
        if v in _TRUE:
            return True
        if v in _FALSE:
            return False
        logger.warning("Setting %s has non-boolean value %r; using default", key, setting.value)
        return default

    def ensure_attendance_entry_enabled(self) -> None:
        if not self.is_enabled(ATTENDANCE_ENTRY_SETTING):
            raise PreconditionFailedError("Attendance entry is currently disabled by the administrator")
