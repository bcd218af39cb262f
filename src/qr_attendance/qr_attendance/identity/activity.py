from __future__ import annotations

import logging
import threading
from concurrent.futures import Executor, Future, ThreadPoolExecutor
from datetime import datetime
from typing import Optional

from ..users.repository import UserRepository

logger = logging.getLogger(__name__)


class ActivityRecorder:
    """Best-effort, non-blocking last-activity updates.

    At most one update per user is queued at a time; requests arriving while
    one is pending are dropped, so a slow store cannot grow the backlog past
    the number of distinct active users. Failures are logged and never reach
    the request that triggered them.
    """

    def __init__(self, users: UserRepository, *, executor: Optional[Executor] = None):
        self._users = users
        self._owns_executor = executor is None
        self._executor = executor or ThreadPoolExecutor(max_workers=2, thread_name_prefix="last-activity")
        self._pending: set[int] = set()
        self._lock = threading.Lock()

    def record(self, user_id: int, at: datetime) -> Optional[Future]:
        with self._lock:
            if user_id in self._pending:
                logger.debug("Last activity update already pending for user=%s", user_id)
                return None
            self._pending.add(user_id)

        try:
            future = self._executor.submit(self._users.touch_last_activity, user_id, at)
        except RuntimeError as e:
            # executor already shut down
            self._release(user_id)
            logger.warning("Could not schedule last activity update for user=%s: %s", user_id, e)
            return None

        future.add_done_callback(lambda f: self._finished(user_id, f))
        return future

    def pending_count(self) -> int:
        with self._lock:
            return len(self._pending)

    def _release(self, user_id: int) -> None:
        with self._lock:
            self._pending.discard(user_id)

    def _finished(self, user_id: int, future: Future) -> None:
        self._release(user_id)
        if future.cancelled():
            return
        error = future.exception()
        if error is not None:
            logger.warning("Could not update last activity for user=%s: %s", user_id, error)

    def shutdown(self, *, wait: bool = True) -> None:
        if self._owns_executor:
            self._executor.shutdown(wait=wait)
