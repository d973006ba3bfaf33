from datetime import datetime, timedelta, timezone

import pytest

from wallet.config import Settings
from wallet.models import RegisterUserRequest, Role
from wallet.service import WalletService


class FakeClock:
    """Settable clock so tests can cross calendar-day boundaries."""

    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now = self.now + timedelta(**kwargs)


@pytest.fixture
def clock():
    return FakeClock(datetime(2024, 5, 10, 9, 30, tzinfo=timezone.utc))


@pytest.fixture
def service(clock):
    return WalletService(settings=Settings(), clock=clock)


@pytest.fixture
def customer_id(service):
    return service.register_user(RegisterUserRequest(type=Role.CUSTOMER, name="Asha")).id


@pytest.fixture
def vendor_id(service):
    return service.register_user(RegisterUserRequest(type=Role.VENDOR, name="Ravi Stores")).id
