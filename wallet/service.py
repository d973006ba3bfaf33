from datetime import datetime, timezone
from decimal import Decimal
from typing import Callable, Optional
from uuid import UUID

from .config import Settings, settings as default_settings
from .limiter import RateLimiter
from .locks import KeyedLocks
from .models import (
    InitiateReferralRequest,
    InitiateReferralResponse,
    Referral,
    RegisterUserRequest,
    RegisterUserResponse,
    SweepSummary,
    User,
    VendorRegisterRequest,
    VendorRegisterResponse,
    Wallet,
    WithdrawalResult,
)
from .referrals import ReferralService
from .store import LedgerStore
from .sweeper import EodSweeper
from .users import UserRegistry
from .withdrawals import WithdrawalOrchestrator


class WalletService:
    def __init__(
        self,
        settings: Optional[Settings] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self.settings = settings or default_settings
        self.clock = clock or (lambda: datetime.now(timezone.utc))
        self.policies = self.settings.role_policies()
        self.locks = KeyedLocks()

        self.users = UserRegistry(clock=self.clock)
        self.store = LedgerStore(self.locks, clock=self.clock, currency=self.settings.CURRENCY)
        self.limiter = RateLimiter(
            self.policies, self.locks, clock=self.clock, tz=self.settings.LEDGER_TIMEZONE,
        )
        self.referrals = ReferralService(
            self.users, self.store, reward_amount=self.settings.REFERRAL_REWARD, clock=self.clock,
        )
        self.withdrawals = WithdrawalOrchestrator(self.users, self.store, self.limiter, self.policies)
        self.sweeper = EodSweeper(self.withdrawals, clock=self.clock)

    def register_user(self, request: RegisterUserRequest) -> RegisterUserResponse:
        user = self.users.register(request.type, name=request.name, phone=request.phone)
        self.store.open_wallet(user.id)
        return RegisterUserResponse(id=user.id, message=f"{request.type.value} registered successfully")

    def get_user(self, user_id: UUID) -> User:
        return self.users.require(user_id)

    def initiate_referral(self, request: InitiateReferralRequest) -> InitiateReferralResponse:
        referral = self.referrals.initiate(request.customer_id, request.vendor_name, request.vendor_location)
        return InitiateReferralResponse(
            vendor_id=referral.vendor_id,
            status=referral.status,
            message="Referral initiated",
        )

    def complete_vendor_registration(self, request: VendorRegisterRequest) -> VendorRegisterResponse:
        referral = self.referrals.complete_registration(
            request.vendor_id, request.vendor_details, request.agreement_accepted,
        )
        return VendorRegisterResponse(
            referral=referral,
            reward=self.referrals.reward_amount,
            message="Vendor registered and both rewarded",
        )

    def get_referral(self, vendor_id: UUID) -> Referral:
        return self.referrals.get(vendor_id)

    def get_wallet(self, user_id: UUID, limit: Optional[int] = None, offset: int = 0) -> Wallet:
        return self.store.get_wallet(user_id, limit, offset)

    def withdraw(self, user_id: UUID, amount: Decimal) -> WithdrawalResult:
        return self.withdrawals.withdraw(user_id, amount)

    def run_eod_sweep(self) -> SweepSummary:
        return self.sweeper.run_sweep()
