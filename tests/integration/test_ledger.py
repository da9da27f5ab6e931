"""Integration tests for the wallet ledger."""

from decimal import Decimal

import pytest

from bracketeer.db.models import WalletTransaction
from bracketeer.errors import InsufficientFunds, LedgerError
from bracketeer.ledger import WalletLedger


class TestWalletLedger:
    def test_unknown_user_has_zero_balance(self, db_session, tables):
        assert WalletLedger(db_session).balance(42) == Decimal("0.00")

    def test_deposit_creates_wallet_and_transaction(self, db_session, tables):
        ledger = WalletLedger(db_session)

        balance = ledger.deposit(42, "25.50")
        db_session.flush()

        assert balance == Decimal("25.50")
        assert ledger.balance(42) == Decimal("25.50")
        row = db_session.query(WalletTransaction).filter_by(user_id=42).one()
        assert (row.type, row.amount, row.status) == ("deposit", Decimal("25.50"), "completed")

    def test_debit_reduces_balance(self, db_session, tables):
        ledger = WalletLedger(db_session)
        ledger.credit_wallet(7, "10.00")
        assert ledger.debit_wallet(7, "4.25") == Decimal("5.75")

    def test_overdraft_rejected(self, db_session, tables):
        ledger = WalletLedger(db_session)
        ledger.credit_wallet(7, "1.00")
        with pytest.raises(InsufficientFunds):
            ledger.debit_wallet(7, "1.01")
        assert ledger.balance(7) == Decimal("1.00")

    def test_non_positive_amount_rejected(self, db_session, tables):
        with pytest.raises(LedgerError):
            WalletLedger(db_session).credit_wallet(7, "0")

    def test_unknown_transaction_type_rejected(self, db_session, tables):
        with pytest.raises(LedgerError):
            WalletLedger(db_session).record_transaction(7, "bonus", "5.00")
