"""Data models for LedgerLens."""

from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from uuid import UUID, uuid4

from pydantic import BaseModel, Field


class InstitutionCode(str, Enum):
    """Issuing institutions with a dedicated statement extractor."""

    AMEX = "AMEX"
    CHASE = "CHASE"
    CITI = "CITI"
    WELLS_FARGO = "WELLS_FARGO"
    CAPITAL_ONE = "CAPITAL_ONE"
    DISCOVER = "DISCOVER"
    BANK_OF_AMERICA = "BANK_OF_AMERICA"
    GOLDMAN_SACHS = "GOLDMAN_SACHS"
    GENERIC = "GENERIC"


class TransactionType(str, Enum):
    """Direction of a transaction. Amounts are always non-negative."""

    DEBIT = "DEBIT"
    CREDIT = "CREDIT"
    PAYMENT = "PAYMENT"
    FEE = "FEE"
    INTEREST = "INTEREST"


class StatementStatus(str, Enum):
    """Processing lifecycle of an uploaded statement."""

    PENDING = "PENDING"
    PROCESSING = "PROCESSING"
    COMPLETED = "COMPLETED"
    FAILED = "FAILED"


class AccountType(str, Enum):
    CHECKING = "CHECKING"
    SAVINGS = "SAVINGS"
    CREDIT_CARD = "CREDIT_CARD"
    LOAN = "LOAN"


class Account(BaseModel):
    """A card or bank account. Extractors may fill in its metadata fields."""

    id: UUID = Field(default_factory=uuid4)
    name: str
    institution: InstitutionCode
    type: AccountType = AccountType.CREDIT_CARD
    last4: str | None = None
    credit_limit: Decimal | None = None
    current_balance: Decimal | None = None
    available_credit: Decimal | None = None
    apr: Decimal | None = None
    promo_apr: Decimal | None = None
    promo_apr_end_date: date | None = None
    payment_due_day: int | None = Field(default=None, ge=1, le=31)
    is_active: bool = True

    class Config:
        from_attributes = True


class Statement(BaseModel):
    """One uploaded statement document and the metadata extracted from it."""

    id: UUID = Field(default_factory=uuid4)
    account_id: UUID | None = None
    file_name: str
    file_path: str | None = None
    file_hash: str | None = None
    statement_month: date | None = None
    start_date: date | None = None
    end_date: date | None = None
    opening_balance: Decimal | None = None
    closing_balance: Decimal | None = None
    minimum_payment: Decimal | None = None
    payment_due_date: date | None = None
    ytd_total_fees: Decimal | None = None
    ytd_total_interest: Decimal | None = None
    ytd_year: int | None = None
    status: StatementStatus = StatementStatus.PENDING
    error_message: str | None = None
    created_at: datetime = Field(default_factory=datetime.now)

    class Config:
        from_attributes = True

    def reset_derived_fields(self) -> None:
        """Clear everything extraction writes, ahead of a reprocess."""
        self.status = StatementStatus.PENDING
        self.error_message = None
        self.payment_due_date = None
        self.minimum_payment = None
        self.start_date = None
        self.end_date = None
        self.statement_month = None
        self.closing_balance = None
        self.ytd_total_fees = None
        self.ytd_total_interest = None
        self.ytd_year = None


class Transaction(BaseModel):
    """A single statement line item."""

    id: UUID = Field(default_factory=uuid4)
    account_id: UUID | None = None
    statement_id: UUID | None = None
    transaction_date: date
    post_date: date | None = None
    description: str = Field(max_length=500)
    merchant_name: str | None = None
    category: str | None = None
    amount: Decimal = Field(ge=0)  # Direction lives in `type`, never in the sign
    type: TransactionType

    class Config:
        from_attributes = True


class UploadResponse(BaseModel):
    """Response after a statement upload."""

    statement_id: UUID
    file_name: str
    status: StatementStatus
    message: str


class AccountAssignment(BaseModel):
    """Result of linking a statement to an account."""

    statement_id: UUID
    account_id: UUID
    transactions_updated: int
