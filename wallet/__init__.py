"""
Referral Wallet Ledger

This module provides:
- Per-user wallets with append-only credit/debit history
- Role-based daily withdrawal limits and minimum amounts
- Two-phase referral lifecycle: initiated → registered, rewarded exactly once
- Withdrawals serialized per user
- Best-effort end-of-day sweep of every eligible balance
"""

from .errors import (
    WalletServiceError,
    NotFoundError,
    ConflictError,
    InvalidAmountError,
    LimitExceededError,
    BelowMinimumError,
    InsufficientBalanceError,
)
from .models import (
    Role,
    TransactionKind,
    ReferralStatus,
    Transaction,
    Wallet,
    Referral,
    User,
)
from .service import WalletService

__all__ = [
    "WalletServiceError",
    "NotFoundError",
    "ConflictError",
    "InvalidAmountError",
    "LimitExceededError",
    "BelowMinimumError",
    "InsufficientBalanceError",
    "Role",
    "TransactionKind",
    "ReferralStatus",
    "Transaction",
    "Wallet",
    "Referral",
    "User",
    "WalletService",
]
