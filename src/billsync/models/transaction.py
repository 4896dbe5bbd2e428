"""SQLModel definitions for ledger transactions."""

from __future__ import annotations

from datetime import date, datetime, timezone
from typing import TYPE_CHECKING, ClassVar, Optional

from sqlalchemy import Column, ForeignKey, Integer
from sqlalchemy.orm import relationship
from sqlmodel import Field, Relationship, SQLModel

if TYPE_CHECKING:  # pragma: no cover - import guard for circular dependency
    from .account import Account
    from .obligation import Obligation


class Transaction(SQLModel, table=True):
    """A single ledger entry, optionally settling one payment schedule entry."""

    __tablename__: ClassVar[str] = "ledger_transaction"

    id: Optional[int] = Field(default=None, primary_key=True)
    name: str = Field(nullable=False, max_length=255)
    occurred_on: date = Field(nullable=False, index=True)
    amount: float = Field(nullable=False)
    account_id: Optional[int] = Field(
        default=None,
        sa_column=Column(Integer, ForeignKey("account.id", ondelete="SET NULL"), nullable=True),
    )
    # Deleting the schedule entry keeps the ledger row and clears the link.
    obligation_id: Optional[int] = Field(
        default=None,
        sa_column=Column(
            Integer,
            ForeignKey("obligation.id", ondelete="SET NULL"),
            nullable=True,
            index=True,
        ),
    )
    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        nullable=False,
    )

    account: "Account | None" = Relationship(
        back_populates="transactions",
        sa_relationship=relationship("Account", back_populates="transactions"),
    )
    obligation: "Obligation | None" = Relationship(
        back_populates="transactions",
        sa_relationship=relationship("Obligation", back_populates="transactions"),
    )
