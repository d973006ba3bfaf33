import logging
import threading
from datetime import datetime, timezone
from decimal import Decimal, InvalidOperation
from typing import Callable, Optional
from uuid import UUID, uuid4

from .errors import InvalidAmountError
from .locks import KeyedLocks
from .models import Transaction, TransactionKind, Wallet, as_user_id

logger = logging.getLogger(__name__)

CENT = Decimal("0.01")
MAX_AMOUNT = Decimal("1000000000000")


def normalize_amount(amount) -> Decimal:
    """
    Parse an amount into a Decimal with exactly two places.

    Rejects non-finite values, sub-cent precision and magnitudes past
    MAX_AMOUNT, so balance arithmetic stays exact. Sign is not checked here.
    """
    try:
        amount = Decimal(str(amount))
    except InvalidOperation:
        raise InvalidAmountError(f"Amount {amount!r} is not a number.") from None
    if not amount.is_finite():
        raise InvalidAmountError("Amount must be a finite number.")
    if abs(amount) > MAX_AMOUNT:
        raise InvalidAmountError(f"Amount must not exceed {MAX_AMOUNT}.")
    quantized = amount.quantize(CENT)
    if quantized != amount:
        raise InvalidAmountError("Amount must have at most 2 decimal places.")
    return quantized


class LedgerStore:
    """
    Owns every wallet's balance and append-only transaction history.

    Callers only reach wallet state through credit, debit and the read
    methods; snapshots handed out are copies. Each mutation runs under the
    owning user's lock, so ``balance == sum(credits) - sum(debits)`` holds
    between any two operations and the balance never drops below zero.
    """

    def __init__(
        self,
        locks: Optional[KeyedLocks] = None,
        clock: Optional[Callable[[], datetime]] = None,
        currency: str = "INR",
    ):
        self.locks = locks if locks is not None else KeyedLocks()
        self._clock = clock or (lambda: datetime.now(timezone.utc))
        self.currency = currency
        self._guard = threading.Lock()
        self._wallets: dict[UUID, dict] = {}

    def open_wallet(self, user_id: UUID) -> Wallet:
        user_id = as_user_id(user_id)
        with self.locks.hold(user_id):
            self._ensure(user_id)
            return self._snapshot(user_id)

    def credit(self, user_id: UUID, amount: Decimal) -> Transaction:
        user_id = as_user_id(user_id)
        amount = self._validate(amount)
        with self.locks.hold(user_id):
            record = self._ensure(user_id)
            record["balance"] += amount
            tx = self._append(record, TransactionKind.CREDIT, amount)

        logger.info(
            "Credit applied: user=%s amount=%s new_balance=%s tx=%s",
            user_id, amount, tx.balance_after, tx.id,
        )
        return tx

    def debit(self, user_id: UUID, amount: Decimal) -> Optional[Transaction]:
        """
        Debit the wallet, or return None when it is missing or too small.

        A declined debit leaves the wallet untouched.
        """
        user_id = as_user_id(user_id)
        amount = self._validate(amount)
        if user_id not in self._wallets:
            logger.warning("Debit declined: user=%s amount=%s no wallet", user_id, amount)
            return None

        with self.locks.hold(user_id):
            record = self._wallets[user_id]
            if record["balance"] < amount:
                logger.warning(
                    "Debit declined: user=%s amount=%s balance=%s",
                    user_id, amount, record["balance"],
                )
                return None
            record["balance"] -= amount
            tx = self._append(record, TransactionKind.DEBIT, amount)

        logger.info(
            "Debit applied: user=%s amount=%s new_balance=%s tx=%s",
            user_id, amount, tx.balance_after, tx.id,
        )
        return tx

    def get_wallet(self, user_id: UUID, limit: Optional[int] = None, offset: int = 0) -> Wallet:
        user_id = as_user_id(user_id)
        # Wallets are never removed, so an absent id can be answered without a lock.
        if user_id not in self._wallets:
            return Wallet(user_id=user_id, currency=self.currency, provisioned=False)
        with self.locks.hold(user_id):
            return self._snapshot(user_id, limit, offset)

    def get_balance(self, user_id: UUID) -> Decimal:
        record = self._wallets.get(as_user_id(user_id))
        return record["balance"] if record else Decimal("0.00")

    def get_history(self, user_id: UUID, limit: Optional[int] = None, offset: int = 0) -> list[Transaction]:
        return self.get_wallet(user_id, limit, offset).transactions

    def _ensure(self, user_id: UUID) -> dict:
        with self._guard:
            record = self._wallets.get(user_id)
            if record is None:
                record = {"balance": Decimal("0.00"), "transactions": []}
                self._wallets[user_id] = record
                logger.info("Wallet provisioned: user=%s", user_id)
            return record

    def _append(self, record: dict, kind: TransactionKind, amount: Decimal) -> Transaction:
        tx = Transaction(
            id=uuid4(),
            kind=kind,
            amount=amount,
            balance_after=record["balance"],
            timestamp=self._clock(),
        )
        record["transactions"].append(tx)
        return tx

    def _snapshot(self, user_id: UUID, limit: Optional[int] = None, offset: int = 0) -> Wallet:
        record = self._wallets[user_id]
        transactions = record["transactions"]
        end = None if limit is None else offset + limit
        return Wallet(
            user_id=user_id,
            balance=record["balance"],
            currency=self.currency,
            provisioned=True,
            transactions=list(transactions[offset:end]),
            total_transactions=len(transactions),
        )

    @staticmethod
    def _validate(amount) -> Decimal:
        amount = normalize_amount(amount)
        if amount <= 0:
            raise InvalidAmountError("Amount must be positive.")
        return amount
