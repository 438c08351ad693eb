from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional


@dataclass(frozen=True)
class SystemSetting:
    key: str
    value: str
    description: str = ""
    updated_at: Optional[datetime] = None

    def to_dict(self) -> dict:
        return {
            "key": self.key,
            "value": self.value,
            "description": self.description,
            "updatedAt": self.updated_at.isoformat() if self.updated_at else None,
        }
