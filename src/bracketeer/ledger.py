"""
Wallet ledger backed by the wallets and wallet_transactions tables.

The bracket engine only needs ``credit_wallet`` and ``record_transaction``
for prize payouts; the rest mirrors the platform wallet operations so tests
and scripts can fund and inspect wallets.
"""

from __future__ import annotations

import logging
from decimal import Decimal
from typing import Optional

from sqlalchemy.orm import Session

from bracketeer.config import settings
from bracketeer.db.models import Wallet, WalletTransaction
from bracketeer.errors import InsufficientFunds, LedgerError

logger = logging.getLogger(__name__)

TRANSACTION_TYPES = (
    "deposit",
    "withdrawal",
    "tournament_entry",
    "tournament_prize",
    "tournament_refund",
)


class WalletLedger:
    """Credit, debit and record wallet movements inside the caller's transaction."""

    def __init__(self, session: Session):
        self.session = session

    def _wallet(self, user_id: int, lock: bool = True) -> Wallet:
        query = self.session.query(Wallet).filter(Wallet.user_id == user_id)
        if lock:
            query = query.with_for_update()
        wallet = query.one_or_none()
        if wallet is None:
            wallet = Wallet(user_id=user_id, balance=Decimal("0.00"))
            self.session.add(wallet)
            self.session.flush()
        return wallet

    @staticmethod
    def _amount(amount) -> Decimal:
        value = Decimal(amount).quantize(settings.currency_quantum)
        if value <= 0:
            raise LedgerError(f"Amount must be positive, got {amount}")
        return value

    def balance(self, user_id: int) -> Decimal:
        wallet = self.session.query(Wallet).filter(Wallet.user_id == user_id).one_or_none()
        return wallet.balance if wallet is not None else Decimal("0.00")

    def credit_wallet(self, user_id: int, amount) -> Decimal:
        """Add ``amount`` to the user's balance and return the new balance."""
        value = self._amount(amount)
        wallet = self._wallet(user_id)
        wallet.balance = wallet.balance + value
        return wallet.balance

    def debit_wallet(self, user_id: int, amount) -> Decimal:
        """
        Subtract ``amount`` from the user's balance.

        Raises:
            InsufficientFunds: if the balance is lower than the amount
        """
        value = self._amount(amount)
        wallet = self._wallet(user_id)
        if wallet.balance < value:
            raise InsufficientFunds(user_id, wallet.balance, value)
        wallet.balance = wallet.balance - value
        return wallet.balance

    def record_transaction(
        self,
        user_id: int,
        type: str,
        amount,
        description: Optional[str] = None,
        status: str = "completed",
    ) -> WalletTransaction:
        if type not in TRANSACTION_TYPES:
            raise LedgerError(f"Unknown transaction type: {type}")
        transaction = WalletTransaction(
            user_id=user_id,
            type=type,
            amount=self._amount(amount),
            description=description,
            status=status,
        )
        self.session.add(transaction)
        return transaction

    def deposit(self, user_id: int, amount, description: str = "Wallet deposit") -> Decimal:
        balance = self.credit_wallet(user_id, amount)
        self.record_transaction(user_id, "deposit", amount, description)
        logger.info("Deposited %s for user %d", amount, user_id)
        return balance
