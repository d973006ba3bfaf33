import logging
from decimal import Decimal
from typing import Optional
from uuid import UUID

from .config import RolePolicy
from .errors import (
    BelowMinimumError,
    InsufficientBalanceError,
    InvalidAmountError,
    LimitExceededError,
)
from .limiter import RateLimiter
from .models import Role, WithdrawalResult
from .store import LedgerStore, normalize_amount
from .users import UserRegistry

logger = logging.getLogger(__name__)


class WithdrawalOrchestrator:
    """
    Runs a withdrawal as one unit per user.

    The limit check, minimum check, debit and withdrawal-log append all
    happen while the user's lock is held. The log is appended only after the
    debit succeeds, so a failed withdrawal leaves balance, history and the
    daily count unchanged.
    """

    def __init__(
        self,
        users: UserRegistry,
        store: LedgerStore,
        limiter: RateLimiter,
        policies: dict[Role, RolePolicy],
    ):
        self.users = users
        self.store = store
        self.limiter = limiter
        self.policies = policies
        self.locks = store.locks

    def withdraw(self, user_id: UUID, amount: Decimal, role: Optional[Role] = None) -> WithdrawalResult:
        user = self.users.require(user_id)
        user_id = user.id
        role = role or user.role
        amount = normalize_amount(amount)

        with self.locks.hold(user_id):
            if not self.limiter.can_withdraw(user_id, role):
                logger.warning("Withdrawal rejected (limit reached): user=%s role=%s", user_id, role.value)
                raise LimitExceededError("Withdraw limit reached")

            minimum = self.policies[role].min_withdrawal
            if amount < minimum:
                logger.warning(
                    "Withdrawal rejected (below minimum): user=%s amount=%s minimum=%s",
                    user_id, amount, minimum,
                )
                raise BelowMinimumError(role, minimum)
            if amount <= 0:
                raise InvalidAmountError("Withdrawal amount must be positive.")

            tx = self.store.debit(user_id, amount)
            if tx is None:
                raise InsufficientBalanceError("Insufficient balance")

            self.limiter.record_withdrawal(user_id)

        logger.info(
            "Withdrawal completed: user=%s amount=%s balance=%s tx=%s",
            user_id, amount, tx.balance_after, tx.id,
        )
        return WithdrawalResult(
            user_id=user_id,
            amount=amount,
            balance=tx.balance_after,
            transaction=tx,
        )
