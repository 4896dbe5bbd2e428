"""Account model for settling payments."""

from __future__ import annotations

from typing import TYPE_CHECKING, ClassVar, Optional

from sqlalchemy.orm import relationship
from sqlmodel import Field, Relationship, SQLModel

if TYPE_CHECKING:  # pragma: no cover
    from .transaction import Transaction


class Account(SQLModel, table=True):
    """A debit or credit account that money moves through."""

    __tablename__: ClassVar[str] = "account"

    id: Optional[int] = Field(default=None, primary_key=True)
    name: str = Field(nullable=False, max_length=128, index=True)
    account_type: str = Field(default="debit", nullable=False, max_length=16)

    transactions: list["Transaction"] = Relationship(
        back_populates="account",
        sa_relationship=relationship("Transaction", back_populates="account"),
    )
