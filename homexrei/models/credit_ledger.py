from datetime import datetime, timezone
from uuid import uuid4

from sqlalchemy import Column, DateTime, Numeric, String, UniqueConstraint

from homexrei.db.base import Base


class CreditLedgerEntry(Base):
    __tablename__ = "credit_ledger"
    __table_args__ = (UniqueConstraint("user_id", "reference", "operation", name="uq_credit_ledger_idempotency"),)

    id = Column(String, primary_key=True, default=lambda: str(uuid4()))
    user_id = Column(String, nullable=False, index=True)
    operation = Column(String, nullable=False)  # CREDIT, DEBIT
    amount = Column(Numeric(12, 2), nullable=False)  # signed
    balance_after = Column(Numeric(12, 2), nullable=False)
    reference = Column(String, nullable=False)
    reason = Column(String, nullable=True)
    created_at = Column(DateTime, nullable=False, default=lambda: datetime.now(timezone.utc))
