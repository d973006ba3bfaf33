import logging
import threading
from datetime import datetime, timezone
from decimal import Decimal
from typing import Callable, Optional
from uuid import UUID, uuid4

from .errors import ConflictError, InvalidAmountError, NotFoundError
from .models import Referral, ReferralStatus, Role, as_user_id
from .store import LedgerStore
from .users import UserRegistry

logger = logging.getLogger(__name__)


class ReferralService:
    """
    Two-phase referral lifecycle: initiated -> registered.

    Completing a registration registers the vendor, credits the reward to
    both the referring customer and the vendor, and only then marks the
    referral registered. A referral that is already registered is rejected
    with ConflictError, so rewards are paid exactly once per vendor.
    """

    def __init__(
        self,
        users: UserRegistry,
        store: LedgerStore,
        reward_amount: Decimal = Decimal("120.00"),
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self.users = users
        self.store = store
        self.reward_amount = Decimal(str(reward_amount))
        self._clock = clock or (lambda: datetime.now(timezone.utc))
        # Lock order: this lock, then user locks inside the store.
        self._lock = threading.Lock()
        self._referrals: dict[UUID, Referral] = {}

    def initiate(self, customer_id: UUID, vendor_name: str, vendor_location: Optional[str] = None) -> Referral:
        referral = Referral(
            vendor_id=uuid4(),
            customer_id=customer_id,
            vendor_name=vendor_name,
            vendor_location=vendor_location,
            created_at=self._clock(),
        )
        with self._lock:
            self._referrals[referral.vendor_id] = referral

        logger.info("Referral initiated: customer=%s vendor=%s", customer_id, referral.vendor_id)
        return referral.model_copy()

    def complete_registration(
        self,
        vendor_id: UUID,
        vendor_details: Optional[dict] = None,
        agreement_accepted: bool = False,
    ) -> Referral:
        if self.reward_amount <= 0:
            raise InvalidAmountError(f"Referral reward must be positive, got {self.reward_amount}")

        vendor_id = as_user_id(vendor_id)
        details = dict(vendor_details or {})
        with self._lock:
            referral = self._referrals.get(vendor_id)
            if referral is None:
                raise NotFoundError(f"Referral {vendor_id} not found")
            if not referral.can_register():
                logger.warning("Referral already registered: vendor=%s", vendor_id)
                raise ConflictError(f"Vendor {vendor_id} already completed registration")

            if self.users.get(vendor_id) is None:
                self.users.register(
                    Role.VENDOR,
                    name=details.get("name", referral.vendor_name),
                    phone=details.get("phone"),
                    profile=details,
                    user_id=vendor_id,
                )
            self.store.open_wallet(vendor_id)

            self.store.credit(referral.customer_id, self.reward_amount)
            self.store.credit(vendor_id, self.reward_amount)

            updated = referral.model_copy(update={
                "status": ReferralStatus.REGISTERED,
                "agreement_accepted": agreement_accepted,
                "registered_at": self._clock(),
            })
            self._referrals[vendor_id] = updated

        logger.info(
            "Referral registered: vendor=%s customer=%s reward=%s agreement=%s",
            vendor_id, referral.customer_id, self.reward_amount, agreement_accepted,
        )
        return updated.model_copy()

    def get(self, vendor_id: UUID) -> Referral:
        referral = self._referrals.get(as_user_id(vendor_id))
        if referral is None:
            raise NotFoundError(f"Referral {vendor_id} not found")
        return referral.model_copy()

    def list_for_customer(self, customer_id: UUID) -> list[Referral]:
        customer_id = as_user_id(customer_id)
        with self._lock:
            referrals = [r for r in self._referrals.values() if r.customer_id == customer_id]
        referrals.sort(key=lambda r: r.created_at)
        return [r.model_copy() for r in referrals]
