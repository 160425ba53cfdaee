from datetime import datetime
from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Index, Integer, Numeric, String, text
from sqlalchemy.orm import relationship
from app.core.database import Base

ACCOUNT_TYPES = ("CURRENT", "SAVINGS")


class Account(Base):
    """Account model for user financial accounts."""

    __tablename__ = "accounts"
    __table_args__ = (
        # At most one default account per user; the services guarantee at least one.
        Index(
            "uq_accounts_user_default",
            "user_id",
            unique=True,
            sqlite_where=text("is_default = 1"),
            postgresql_where=text("is_default"),
        ),
    )

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    name = Column(String, nullable=False)
    type = Column(String(16), nullable=False)  # CURRENT or SAVINGS
    balance = Column(Numeric(14, 2), nullable=False, default=0)
    is_default = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Relationships
    user = relationship("User", backref="accounts")
    transactions = relationship(
        "Transaction",
        back_populates="account",
        order_by="Transaction.date.desc()",
    )
