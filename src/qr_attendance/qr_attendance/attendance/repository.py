from __future__ import annotations

from datetime import datetime
from typing import Optional, Protocol, Sequence

from ..core.enums import InsertOutcome
from .model import RedemptionRecord


class AttendanceRepository(Protocol):
    """Append-only record store.

    Implementations raise StoreUnavailableError on timeouts/connectivity errors.
    """

    def insert_if_absent(self, record: RedemptionRecord) -> InsertOutcome:
        """Atomically insert unless (session_id, student_id) already exists.

        Must be a single atomic operation (unique constraint or equivalent),
        never a read followed by a write.
        """
        raise NotImplementedError

    def get_for_session_and_student(self, session_id: str, student_id: int) -> Optional[RedemptionRecord]:
        raise NotImplementedError

    def has_session(self, session_id: str) -> bool:
        raise NotImplementedError

    def list_for_student(
        self,
        student_id: int,
        *,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
        activity_label: Optional[str] = None,
        limit: int = 100,
    ) -> Sequence[RedemptionRecord]:
        """Latest first; ``start`` inclusive, ``end`` exclusive."""
        raise NotImplementedError

    def list_for_activity(
        self,
        activity_label: str,
        *,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
    ) -> Sequence[RedemptionRecord]:
        """Latest first; ``start`` inclusive, ``end`` exclusive."""
        raise NotImplementedError
