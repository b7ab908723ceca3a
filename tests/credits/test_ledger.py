"""Tests for CreditLedgerService: atomic debit/credit, idempotent references."""
from decimal import Decimal

import pytest

from homexrei.core.errors import InsufficientCreditsError, NotFoundError, ValidationError
from homexrei.models.credit_ledger import CreditLedgerEntry
from homexrei.services.credits.service import CREDIT, DEBIT, CreditLedgerService


class TestBalance:
    def test_balance(self, db, user_factory):
        user = user_factory(credits=7)
        assert CreditLedgerService(db).get_balance(user.id) == Decimal("7.00")

    def test_unknown_user(self, db):
        with pytest.raises(NotFoundError):
            CreditLedgerService(db).get_balance("missing")

    def test_ensure_sufficient(self, db, user_factory):
        user = user_factory(credits=0)
        with pytest.raises(InsufficientCreditsError) as exc:
            CreditLedgerService(db).ensure_sufficient(user.id, 1)
        assert exc.value.status_code == 402
        assert exc.value.to_dict() == {"error": "Insufficient credits", "required": 1.0, "current": 0.0}


class TestCredit:
    def test_credit_adds_and_journals(self, db, user_factory):
        user = user_factory(credits=5)
        ledger = CreditLedgerService(db)

        new_balance = ledger.credit(user.id, 10, reference="cs_1", reason="stripe_purchase")
        db.commit()

        assert new_balance == Decimal("15.00")
        entry = db.query(CreditLedgerEntry).filter_by(user_id=user.id).one()
        assert entry.operation == CREDIT
        assert entry.amount == Decimal("10.00")
        assert entry.balance_after == Decimal("15.00")

    def test_same_reference_applies_once(self, db, user_factory):
        user = user_factory(credits=0)
        ledger = CreditLedgerService(db)

        ledger.credit(user.id, 10, reference="cs_1")
        again = ledger.credit(user.id, 10, reference="cs_1")
        db.commit()

        assert again == Decimal("10.00")
        assert db.query(CreditLedgerEntry).count() == 1

    @pytest.mark.parametrize("amount", [0, -5])
    def test_non_positive_rejected(self, db, user_factory, amount):
        user = user_factory()
        with pytest.raises(ValidationError):
            CreditLedgerService(db).credit(user.id, amount, reference="x")

    def test_unknown_user(self, db):
        with pytest.raises(NotFoundError):
            CreditLedgerService(db).credit("missing", 5, reference="x")


class TestDebit:
    def test_debit(self, db, user_factory):
        user = user_factory(credits=3)
        ledger = CreditLedgerService(db)

        new_balance = ledger.debit(user.id, 1, reference="video:1")
        db.commit()

        assert new_balance == Decimal("2.00")
        entry = db.query(CreditLedgerEntry).filter_by(user_id=user.id).one()
        assert entry.operation == DEBIT
        assert entry.amount == Decimal("-1.00")

    def test_insufficient_leaves_balance(self, db, user_factory):
        user = user_factory(credits=0.5)
        ledger = CreditLedgerService(db)

        with pytest.raises(InsufficientCreditsError) as exc:
            ledger.debit(user.id, 1, reference="video:1")
        db.rollback()

        assert exc.value.current == Decimal("0.50")
        assert ledger.get_balance(user.id) == Decimal("0.50")
        assert db.query(CreditLedgerEntry).count() == 0

    def test_exact_balance_reaches_zero(self, db, user_factory):
        user = user_factory(credits=1)
        assert CreditLedgerService(db).debit(user.id, 1, reference="video:1") == Decimal("0.00")

    def test_same_reference_debits_once(self, db, user_factory):
        user = user_factory(credits=5)
        ledger = CreditLedgerService(db)
        ledger.debit(user.id, 1, reference="video:1")
        ledger.debit(user.id, 1, reference="video:1")
        assert ledger.get_balance(user.id) == Decimal("4.00")

    def test_history_newest_first(self, db, user_factory):
        user = user_factory(credits=0)
        ledger = CreditLedgerService(db)
        ledger.credit(user.id, 5, reference="a")
        ledger.debit(user.id, 1, reference="b")
        db.commit()

        history = ledger.history(user.id)
        assert len(history) == 2
        assert {e.reference for e in history} == {"a", "b"}
