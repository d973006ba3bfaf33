"""
Unit Tests for the Rate Limiter
"""

from datetime import datetime, timezone
from decimal import Decimal
from uuid import UUID, uuid4

import pytest
from pydantic import ValidationError

from wallet.config import RolePolicy, Settings
from wallet.limiter import RateLimiter
from wallet.models import Role

from conftest import FakeClock


USER_ID = UUID("550e8400-e29b-41d4-a716-446655440000")
POLICIES = Settings().role_policies()


class TestDailyCaps:
    """Tests for role caps within one day."""

    def test_customer_once_per_day(self, clock):
        limiter = RateLimiter(POLICIES, clock=clock)

        assert limiter.can_withdraw(USER_ID, Role.CUSTOMER) is True
        limiter.record_withdrawal(USER_ID)
        assert limiter.can_withdraw(USER_ID, Role.CUSTOMER) is False

    def test_vendor_three_per_day(self, clock):
        limiter = RateLimiter(POLICIES, clock=clock)

        for _ in range(3):
            assert limiter.can_withdraw(USER_ID, Role.VENDOR) is True
            limiter.record_withdrawal(USER_ID)
            clock.advance(minutes=5)

        assert limiter.withdrawals_today(USER_ID) == 3
        assert limiter.can_withdraw(USER_ID, Role.VENDOR) is False

    def test_role_without_policy_never_allowed(self, clock):
        limiter = RateLimiter({Role.CUSTOMER: RolePolicy(1, Decimal("120"))}, clock=clock)

        assert limiter.can_withdraw(USER_ID, Role.VENDOR) is False

    def test_can_withdraw_is_read_only(self, clock):
        limiter = RateLimiter(POLICIES, clock=clock)

        for _ in range(5):
            limiter.can_withdraw(USER_ID, Role.CUSTOMER)

        assert limiter.withdrawals_today(USER_ID) == 0


class TestDayBoundary:
    """Tests for calendar-day rollover."""

    def test_count_resets_next_day(self, clock):
        limiter = RateLimiter(POLICIES, clock=clock)
        limiter.record_withdrawal(USER_ID)
        assert limiter.can_withdraw(USER_ID, Role.CUSTOMER) is False

        clock.advance(days=1)

        assert limiter.withdrawals_today(USER_ID) == 0
        assert limiter.can_withdraw(USER_ID, Role.CUSTOMER) is True

    def test_utc_midnight_is_the_boundary(self):
        clock = FakeClock(datetime(2024, 5, 10, 23, 59, tzinfo=timezone.utc))
        limiter = RateLimiter(POLICIES, clock=clock)
        limiter.record_withdrawal(USER_ID)

        clock.advance(minutes=2)

        assert limiter.today().isoformat() == "2024-05-11"
        assert limiter.can_withdraw(USER_ID, Role.CUSTOMER) is True

    def test_configured_timezone_moves_the_boundary(self):
        # 20:00 UTC is already the next day in Asia/Kolkata (UTC+05:30).
        clock = FakeClock(datetime(2024, 5, 10, 17, 0, tzinfo=timezone.utc))
        limiter = RateLimiter(POLICIES, clock=clock, tz="Asia/Kolkata")
        limiter.record_withdrawal(USER_ID)

        clock.advance(hours=3)

        assert limiter.today().isoformat() == "2024-05-11"
        assert limiter.can_withdraw(USER_ID, Role.CUSTOMER) is True

    def test_unknown_user_count_does_not_allocate_locks(self, clock):
        limiter = RateLimiter(POLICIES, clock=clock)

        for _ in range(100):
            assert limiter.can_withdraw(uuid4(), Role.VENDOR) is True

        assert len(limiter.locks) == 0


class TestRolePolicySettings:
    """Tests for policy configuration."""

    @pytest.mark.parametrize("reward", ["0", "-120"])
    def test_non_positive_reward_rejected(self, reward):
        with pytest.raises(ValidationError):
            Settings(REFERRAL_REWARD=Decimal(reward))

    def test_negative_minimum_rejected(self):
        with pytest.raises(ValidationError):
            Settings(VENDOR_MIN_WITHDRAWAL=Decimal("-1"))
