import logging
from decimal import Decimal

from sqlalchemy import update
from sqlalchemy.orm import Session as DBSession

from homexrei.core.errors import InsufficientCreditsError, NotFoundError, ValidationError
from homexrei.models.credit_ledger import CreditLedgerEntry
from homexrei.models.user import User
from homexrei.utils.currency import to_decimal
from homexrei.utils.metrics import credit_operations_total, insufficient_credits_total

logger = logging.getLogger(__name__)

CREDIT = "CREDIT"
DEBIT = "DEBIT"


class CreditLedgerService:
    """
    Credits live on User.credits and never go below zero.

    Every mutation is one conditional UPDATE at the database, never a
    read-modify-write in Python, and is journaled in credit_ledger with a
    unique (user_id, reference, operation) so a reference applies once.
    Flushes only; the caller owns the transaction.
    """

    def __init__(self, db: DBSession):
        self.db = db

    def get_balance(self, user_id: str) -> Decimal:
        balance = self.db.query(User.credits).filter(User.id == user_id).scalar()
        if balance is None:
            raise NotFoundError("User not found")
        return to_decimal(balance)

    def ensure_sufficient(self, user_id: str, cost) -> Decimal:
        """Raise InsufficientCreditsError unless the balance covers cost. Returns the balance."""
        cost = to_decimal(cost)
        balance = self.get_balance(user_id)
        if balance < cost:
            insufficient_credits_total.inc()
            raise InsufficientCreditsError(required=cost, current=balance)
        return balance

    def credit(self, user_id: str, amount, reference: str, reason: str | None = None) -> Decimal:
        """Add amount (> 0). Returns the new balance."""
        amount = to_decimal(amount)
        if amount <= 0:
            raise ValidationError("Credit amount must be positive")

        existing = self._find_entry(user_id, reference, CREDIT)
        if existing:
            logger.info("credit_already_applied", extra={"user_id": user_id, "payment_ref": reference})
            return self.get_balance(user_id)

        result = self.db.execute(
            update(User)
            .where(User.id == user_id)
            .values(credits=User.credits + amount)
            .execution_options(synchronize_session="fetch")
        )
        if result.rowcount == 0:
            raise NotFoundError("User not found")

        new_balance = self._journal(user_id, CREDIT, amount, reference, reason)
        logger.info(
            "credits_added",
            extra={"user_id": user_id, "credits": str(amount), "new_balance": str(new_balance), "payment_ref": reference},
        )
        return new_balance

    def debit(self, user_id: str, cost, reference: str, reason: str | None = None) -> Decimal:
        """
        Subtract cost, only if the balance still covers it at write time.
        Call after the metered action succeeded. Returns the new balance.
        """
        cost = to_decimal(cost)
        if cost <= 0:
            raise ValidationError("Debit amount must be positive")

        existing = self._find_entry(user_id, reference, DEBIT)
        if existing:
            logger.info("debit_already_applied", extra={"user_id": user_id, "payment_ref": reference})
            return self.get_balance(user_id)

        result = self.db.execute(
            update(User)
            .where(User.id == user_id, User.credits >= cost)
            .values(credits=User.credits - cost)
            .execution_options(synchronize_session="fetch")
        )
        if result.rowcount == 0:
            current = self.get_balance(user_id)
            insufficient_credits_total.inc()
            logger.warning(
                "debit_rejected_insufficient",
                extra={"user_id": user_id, "credits": str(cost), "new_balance": str(current)},
            )
            raise InsufficientCreditsError(required=cost, current=current)

        new_balance = self._journal(user_id, DEBIT, -cost, reference, reason)
        logger.info(
            "credits_debited",
            extra={"user_id": user_id, "credits": str(cost), "new_balance": str(new_balance), "payment_ref": reference},
        )
        return new_balance

    def history(self, user_id: str, limit: int = 50) -> list[CreditLedgerEntry]:
        return (
            self.db.query(CreditLedgerEntry)
            .filter(CreditLedgerEntry.user_id == user_id)
            .order_by(CreditLedgerEntry.created_at.desc())
            .limit(limit)
            .all()
        )

    def _find_entry(self, user_id: str, reference: str, operation: str) -> CreditLedgerEntry | None:
        return (
            self.db.query(CreditLedgerEntry)
            .filter(
                CreditLedgerEntry.user_id == user_id,
                CreditLedgerEntry.reference == reference,
                CreditLedgerEntry.operation == operation,
            )
            .one_or_none()
        )

    def _journal(self, user_id: str, operation: str, signed_amount: Decimal, reference: str, reason: str | None) -> Decimal:
        new_balance = self.get_balance(user_id)
        self.db.add(
            CreditLedgerEntry(
                user_id=user_id,
                operation=operation,
                amount=signed_amount,
                balance_after=new_balance,
                reference=reference,
                reason=reason,
            )
        )
        self.db.flush()
        credit_operations_total.labels(operation=operation).inc()
        return new_balance
