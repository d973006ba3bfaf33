import logging
from datetime import date, datetime, timezone
from typing import Callable, Optional
from uuid import UUID
from zoneinfo import ZoneInfo

from .config import RolePolicy
from .locks import KeyedLocks
from .models import Role, as_user_id

logger = logging.getLogger(__name__)


class RateLimiter:
    """
    Per-user daily withdrawal counter with role-based caps.

    Days are calendar dates in the configured timezone. A role missing from
    ``policies`` is never allowed to withdraw.
    """

    def __init__(
        self,
        policies: dict[Role, RolePolicy],
        locks: Optional[KeyedLocks] = None,
        clock: Optional[Callable[[], datetime]] = None,
        tz: str = "UTC",
    ):
        self.policies = policies
        self.locks = locks if locks is not None else KeyedLocks()
        self._clock = clock or (lambda: datetime.now(timezone.utc))
        self.tz = ZoneInfo(tz)
        self._log: dict[UUID, list[datetime]] = {}

    def today(self) -> date:
        return self._local_date(self._clock())

    def withdrawals_today(self, user_id: UUID) -> int:
        user_id = as_user_id(user_id)
        if user_id not in self._log:
            return 0
        today = self.today()
        with self.locks.hold(user_id):
            entries = self._log[user_id]
            return sum(1 for ts in entries if self._local_date(ts) == today)

    def can_withdraw(self, user_id: UUID, role: Role) -> bool:
        policy = self.policies.get(role)
        if policy is None:
            return False
        return self.withdrawals_today(user_id) < policy.daily_cap

    def record_withdrawal(self, user_id: UUID) -> datetime:
        user_id = as_user_id(user_id)
        now = self._clock()
        with self.locks.hold(user_id):
            self._log.setdefault(user_id, []).append(now)
        logger.info("Withdrawal recorded: user=%s at=%s", user_id, now.isoformat())
        return now

    def _local_date(self, ts: datetime) -> date:
        if ts.tzinfo is None:
            ts = ts.replace(tzinfo=timezone.utc)
        return ts.astimezone(self.tz).date()
