from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Optional
from uuid import UUID
from pydantic import BaseModel, Field, ConfigDict


class Role(str, Enum):
    CUSTOMER = "customer"
    VENDOR = "vendor"


class TransactionKind(str, Enum):
    CREDIT = "credit"
    DEBIT = "debit"


class ReferralStatus(str, Enum):
    INITIATED = "initiated"
    REGISTERED = "registered"


class SweepStatus(str, Enum):
    SWEPT = "swept"
    SKIPPED = "skipped"
    FAILED = "failed"


class RegisterUserRequest(BaseModel):
    type: Role = Field(..., description="Role of the new user")
    name: Optional[str] = None
    phone: Optional[str] = None

    model_config = ConfigDict(json_schema_extra={
        "example": {"type": "customer", "name": "Asha", "phone": "9876543210"}
    })


class InitiateReferralRequest(BaseModel):
    customer_id: UUID
    vendor_name: str
    vendor_location: Optional[str] = None


class VendorRegisterRequest(BaseModel):
    vendor_id: UUID
    vendor_details: dict = Field(default_factory=dict)
    agreement_accepted: bool = False

    model_config = ConfigDict(json_schema_extra={
        "example": {
            "vendor_id": "660e8400-e29b-41d4-a716-446655440001",
            "vendor_details": {"name": "Sharma Tea Stall", "phone": "9123456780"},
            "agreement_accepted": True,
        }
    })


class WithdrawRequest(BaseModel):
    user_id: UUID
    amount: Decimal


class User(BaseModel):
    id: UUID
    role: Role
    name: Optional[str] = None
    phone: Optional[str] = None
    profile: dict = Field(default_factory=dict)
    created_at: datetime

    model_config = ConfigDict(frozen=True)


class Transaction(BaseModel):
    id: UUID
    kind: TransactionKind
    amount: Decimal
    balance_after: Decimal
    timestamp: datetime

    model_config = ConfigDict(frozen=True)


class Wallet(BaseModel):
    user_id: UUID
    balance: Decimal = Decimal("0.00")
    currency: str = "INR"
    provisioned: bool = False
    transactions: list[Transaction] = Field(default_factory=list)
    total_transactions: int = 0


class Referral(BaseModel):
    vendor_id: UUID
    customer_id: UUID
    vendor_name: str
    vendor_location: Optional[str] = None
    status: ReferralStatus = ReferralStatus.INITIATED
    agreement_accepted: bool = False
    created_at: datetime
    registered_at: Optional[datetime] = None

    def can_register(self) -> bool:
        return self.status == ReferralStatus.INITIATED


class RegisterUserResponse(BaseModel):
    id: UUID
    message: str


class InitiateReferralResponse(BaseModel):
    vendor_id: UUID
    status: ReferralStatus
    message: str


class VendorRegisterResponse(BaseModel):
    referral: Referral
    reward: Decimal
    message: str


class WithdrawalResult(BaseModel):
    user_id: UUID
    amount: Decimal
    balance: Decimal
    transaction: Transaction
    message: str = "Withdraw successful"


class SweepOutcome(BaseModel):
    user_id: UUID
    status: SweepStatus
    amount: Decimal = Decimal("0.00")
    reason: Optional[str] = None


class SweepSummary(BaseModel):
    ran_at: datetime
    swept: int = 0
    skipped: int = 0
    failed: int = 0
    outcomes: list[SweepOutcome] = Field(default_factory=list)


def as_user_id(value) -> UUID:
    """Normalize str/UUID ids so every store keys on the same UUID."""
    return value if isinstance(value, UUID) else UUID(str(value))
