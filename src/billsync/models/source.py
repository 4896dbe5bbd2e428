"""Recurring bills and fixed-term installments."""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from typing import TYPE_CHECKING, ClassVar, Optional

from sqlalchemy import Column, ForeignKey, Integer
from sqlalchemy.orm import relationship
from sqlmodel import Field, Relationship, SQLModel

from ..domain.period import Period

if TYPE_CHECKING:  # pragma: no cover
    from .obligation import Obligation


class SourceKind(str, Enum):
    BILL = "bill"
    INSTALLMENT = "installment"


class Source(SQLModel, table=True):
    """A recurring bill or installment loan that owes periodic payments."""

    __tablename__: ClassVar[str] = "source"

    id: Optional[int] = Field(default=None, primary_key=True)
    name: str = Field(nullable=False, max_length=128, index=True)
    kind: str = Field(nullable=False, max_length=16, index=True)
    start_year: Optional[int] = Field(default=None)
    start_month: Optional[int] = Field(default=None, ge=1, le=12)
    # Bills only: last active month within the activation year.
    end_month: Optional[int] = Field(default=None, ge=1, le=12)
    # Installments only: number of monthly payments.
    term_length: Optional[int] = Field(default=None, ge=1)
    expected_amount: float = Field(nullable=False)
    timing: Optional[str] = Field(default=None, max_length=3)
    account_id: Optional[int] = Field(
        default=None,
        sa_column=Column(Integer, ForeignKey("account.id", ondelete="SET NULL"), nullable=True),
    )
    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        nullable=False,
    )

    obligations: list["Obligation"] = Relationship(
        back_populates="source",
        sa_relationship=relationship(
            "Obligation", back_populates="source", passive_deletes=True
        ),
    )

    @property
    def is_bill(self) -> bool:
        return self.kind == SourceKind.BILL.value

    @property
    def is_installment(self) -> bool:
        return self.kind == SourceKind.INSTALLMENT.value

    @property
    def start_period(self) -> Period | None:
        if self.start_year is None or self.start_month is None:
            return None
        return Period(self.start_year, self.start_month)
