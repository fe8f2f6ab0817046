from datetime import datetime, timedelta
from enum import Enum
from typing import Optional


class UploadDuration(str, Enum):
    """
    Retention class chosen at upload time.
    Inheriting from (str, Enum) lets pydantic validate raw form values directly.
    """
    ONE_HOUR = "1h"
    ONE_DAY = "24h"
    SEVEN_DAYS = "7d"
    UNLIMITED = "unlimited"

    @property
    def offset(self) -> Optional[timedelta]:
        return _DURATION_OFFSETS[self]

    def expires_at(self, uploaded_at: datetime) -> Optional[datetime]:
        """uploaded_at + offset, or None when the file never expires."""
        if self.offset is None:
            return None
        return uploaded_at + self.offset

    @classmethod
    def parse(cls, value: Optional[str]) -> "UploadDuration":
        """Empty means the default; anything outside the enum raises ValueError."""
        if value is None or value.strip() == "":
            return cls.UNLIMITED
        return cls(value.strip())


_DURATION_OFFSETS = {
    UploadDuration.ONE_HOUR: timedelta(hours=1),
    UploadDuration.ONE_DAY: timedelta(hours=24),
    UploadDuration.SEVEN_DAYS: timedelta(days=7),
    UploadDuration.UNLIMITED: None,
}


class UploadSessionStatus(str, Enum):
    ACTIVE = "active"
    INACTIVE = "inactive"
