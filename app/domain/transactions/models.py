from datetime import datetime
from sqlalchemy import (
    Column,
    Integer,
    String,
    DateTime,
    Numeric,
    ForeignKey,
    Text,
    Index,
)
from sqlalchemy.orm import relationship
from app.core.database import Base

TRANSACTION_TYPES = ("INCOME", "EXPENSE")


class Transaction(Base):
    """Transaction model for financial transactions."""

    __tablename__ = "transactions"
    __table_args__ = (
        Index("ix_transactions_account_date", "account_id", "date"),
        Index("ix_transactions_user_date", "user_id", "date"),
    )

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    account_id = Column(Integer, ForeignKey("accounts.id"), nullable=False)
    type = Column(String(16), nullable=False)  # INCOME or EXPENSE
    amount = Column(Numeric(14, 2), nullable=False)  # magnitude, never negative
    category = Column(String, nullable=True)
    description = Column(Text, nullable=True)
    date = Column(DateTime, default=datetime.utcnow, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Relationships
    account = relationship("Account", back_populates="transactions")
    user = relationship("User", backref="transactions")
