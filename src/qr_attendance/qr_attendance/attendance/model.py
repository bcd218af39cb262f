from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from ..core.enums import AttendanceStatus


@dataclass(frozen=True)
class RedemptionRecord:
    """Domain entity: one attendance mark, unique per (session_id, student_id).

    Written once by the redemption engine; never updated or deleted.
    """

    session_id: str
    student_id: int
    student_name: str
    activity_label: str
    marked_by: int
    recorded_at: datetime
    status: AttendanceStatus = AttendanceStatus.PRESENT
    roll_number: Optional[str] = None
    record_id: Optional[int] = None

    def to_dict(self) -> dict:
        return {
            "id": self.record_id,
            "session_id": self.session_id,
            "student_id": self.student_id,
            "student_name": self.student_name,
            "roll_number": self.roll_number,
            "subject": self.activity_label,
            "marked_by": self.marked_by,
            "date": self.recorded_at.isoformat(),
            "status": self.status.value,
        }
