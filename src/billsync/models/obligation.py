"""One period's expected payment for a bill or installment."""

from __future__ import annotations

from datetime import date, datetime, timezone
from enum import Enum
from typing import TYPE_CHECKING, ClassVar, Optional

from sqlalchemy import Column, ForeignKey, Integer, UniqueConstraint
from sqlalchemy.orm import relationship
from sqlmodel import Field, Relationship, SQLModel

from ..domain.period import Period

if TYPE_CHECKING:  # pragma: no cover
    from .source import Source
    from .transaction import Transaction


class ObligationStatus(str, Enum):
    PENDING = "pending"
    PARTIAL = "partial"
    PAID = "paid"
    OVERDUE = "overdue"


class Obligation(SQLModel, table=True):
    """A payment schedule entry, unique per source and period."""

    __tablename__: ClassVar[str] = "obligation"
    __table_args__ = (
        UniqueConstraint(
            "source_id", "period_year", "period_month", name="uq_obligation_source_period"
        ),
    )

    id: Optional[int] = Field(default=None, primary_key=True)
    source_id: int = Field(
        sa_column=Column(
            Integer,
            ForeignKey("source.id", ondelete="CASCADE"),
            nullable=False,
            index=True,
        )
    )
    source_kind: str = Field(nullable=False, max_length=16)
    period_year: int = Field(nullable=False, index=True)
    period_month: int = Field(nullable=False, ge=1, le=12)
    payment_number: Optional[int] = Field(default=None)
    expected_amount: float = Field(nullable=False)
    # Display value only; the linked ledger transactions are authoritative.
    amount_paid: Optional[float] = Field(default=None)
    date_paid: Optional[date] = Field(default=None)
    account_id: Optional[int] = Field(
        default=None,
        sa_column=Column(Integer, ForeignKey("account.id", ondelete="SET NULL"), nullable=True),
    )
    receipt: Optional[str] = Field(default=None, max_length=255)
    status: str = Field(
        default=ObligationStatus.PENDING.value, nullable=False, max_length=16, index=True
    )
    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        nullable=False,
    )
    updated_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        nullable=False,
    )

    source: "Source" = Relationship(
        back_populates="obligations",
        sa_relationship=relationship("Source", back_populates="obligations"),
    )
    transactions: list["Transaction"] = Relationship(
        back_populates="obligation",
        sa_relationship=relationship(
            "Transaction", back_populates="obligation", passive_deletes=True
        ),
    )

    @property
    def period(self) -> Period:
        return Period(self.period_year, self.period_month)

    def touch(self) -> None:
        self.updated_at = datetime.now(timezone.utc)
