"""
Posting & Balance Engine

Derives per-account running balances from the transaction list. Balances
are never stored: they are recomputed from the postings on every call.

Debit-normal accounts (codes starting 1, 5 or 6) grow with debits; every
other account grows with credits. Raw debit and credit totals are kept
alongside the signed balance for the trial balance.
"""

import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import Dict, Iterable, List, Optional, Tuple

from .accounts import Account, is_debit_normal
from .amounts import ZERO, to_decimal, total
from .config import get_config
from .journal import Transaction

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LedgerFilter:
    """
    Optional restriction applied before grouping.
    Dates are inclusive and compared as ISO YYYY-MM-DD strings.
    """
    start_date: Optional[str] = None
    end_date: Optional[str] = None
    account_code: Optional[str] = None

    def matches(self, transaction: Transaction) -> bool:
        if self.start_date and transaction.date < self.start_date:
            return False
        if self.end_date and transaction.date > self.end_date:
            return False
        if self.account_code and transaction.account.code != self.account_code:
            return False
        return True


@dataclass(frozen=True)
class LedgerLine:
    """Posting with the account balance right after it"""
    transaction: Transaction
    balance: Decimal


@dataclass(frozen=True)
class AccountLedger:
    """General ledger section for one account"""
    account: Account
    entries: Tuple[LedgerLine, ...]
    final_balance: Decimal
    total_debits: Decimal
    total_credits: Decimal

    def to_dict(self) -> Dict:
        return {
            'account': self.account.to_dict(),
            'entries': [
                {'transaction': line.transaction.to_dict(), 'balance': str(line.balance)}
                for line in self.entries
            ],
            'final_balance': str(self.final_balance),
            'total_debits': str(self.total_debits),
            'total_credits': str(self.total_credits)
        }


@dataclass(frozen=True)
class TrialBalanceRow:
    code: str
    name: str
    total_debits: Decimal
    total_credits: Decimal

    def to_dict(self) -> Dict:
        return {
            'code': self.code,
            'name': self.name,
            'total_debits': str(self.total_debits),
            'total_credits': str(self.total_credits)
        }


@dataclass(frozen=True)
class TrialBalance:
    """Raw debit and credit sums per posted account"""
    rows: Tuple[TrialBalanceRow, ...]
    tolerance: Decimal

    @property
    def total_debits(self) -> Decimal:
        return total(row.total_debits for row in self.rows)

    @property
    def total_credits(self) -> Decimal:
        return total(row.total_credits for row in self.rows)

    @property
    def difference(self) -> Decimal:
        return self.total_debits - self.total_credits

    @property
    def is_balanced(self) -> bool:
        return abs(self.difference) <= self.tolerance

    def to_dict(self) -> Dict:
        return {
            'rows': [row.to_dict() for row in self.rows],
            'total_debits': str(self.total_debits),
            'total_credits': str(self.total_credits),
            'difference': str(self.difference),
            'is_balanced': self.is_balanced
        }


def signed_amount(transaction: Transaction) -> Decimal:
    """Effect of one posting on its account's balance"""
    delta = transaction.total if is_debit_normal(transaction.account.code) else -transaction.total
    return delta if transaction.is_debit else -delta


def filter_transactions(
    transactions: Iterable[Transaction],
    ledger_filter: Optional[LedgerFilter] = None
) -> List[Transaction]:
    """Return the matching transactions as a new list"""
    if ledger_filter is None:
        return list(transactions)
    return [t for t in transactions if ledger_filter.matches(t)]


def group_by_account(transactions: Iterable[Transaction]) -> Dict[str, List[Transaction]]:
    grouped: Dict[str, List[Transaction]] = {}
    for transaction in transactions:
        grouped.setdefault(transaction.account.code, []).append(transaction)
    return grouped


def post_account(transactions: List[Transaction]) -> AccountLedger:
    """
    Run the balance recurrence over one account's transactions

    Transactions are processed by (date, id); the account shown is the
    one embedded in the first posting.
    """
    ordered = sorted(transactions, key=lambda t: (t.date, t.id))
    running_balance = ZERO
    total_debits = ZERO
    total_credits = ZERO
    entries = []

    for transaction in ordered:
        running_balance += signed_amount(transaction)
        if transaction.is_debit:
            total_debits += transaction.total
        else:
            total_credits += transaction.total
        entries.append(LedgerLine(transaction=transaction, balance=running_balance))

    return AccountLedger(
        account=transactions[0].account,
        entries=tuple(entries),
        final_balance=running_balance,
        total_debits=total_debits,
        total_credits=total_credits
    )


def compute_general_ledger(
    transactions: Iterable[Transaction],
    ledger_filter: Optional[LedgerFilter] = None
) -> List[AccountLedger]:
    """
    Compute the general ledger

    Args:
        transactions: Full transaction list, in any order
        ledger_filter: Optional date range and/or account restriction

    Returns:
        One AccountLedger per account with postings, sorted by code
    """
    selected = filter_transactions(transactions, ledger_filter)
    grouped = group_by_account(selected)
    ledger = [post_account(grouped[code]) for code in sorted(grouped)]
    logger.debug("Computed ledger for %d accounts from %d transactions", len(ledger), len(selected))
    return ledger


def account_balances(transactions: Iterable[Transaction]) -> Dict[str, Decimal]:
    """Final signed balance per posted account code over the full history"""
    balances: Dict[str, Decimal] = {}
    for transaction in transactions:
        code = transaction.account.code
        balances[code] = balances.get(code, ZERO) + signed_amount(transaction)
    return balances


def compute_trial_balance(
    transactions: Iterable[Transaction],
    ledger_filter: Optional[LedgerFilter] = None,
    tolerance: Optional[Decimal] = None
) -> TrialBalance:
    """
    Compute the trial balance

    Sums are raw postings with no sign convention applied, so the grand
    totals match whenever every journal entry balances.
    """
    rows = [
        TrialBalanceRow(
            code=section.account.code,
            name=section.account.name,
            total_debits=section.total_debits,
            total_credits=section.total_credits
        )
        for section in compute_general_ledger(transactions, ledger_filter)
    ]
    tolerance = get_config().statement_tolerance if tolerance is None else to_decimal(tolerance)
    return TrialBalance(rows=tuple(rows), tolerance=tolerance)


def account_options(transactions: Iterable[Transaction]) -> List[Account]:
    """Distinct accounts referenced by transactions, sorted by code"""
    seen: Dict[str, Account] = {}
    for transaction in transactions:
        seen.setdefault(transaction.account.code, transaction.account)
    return [seen[code] for code in sorted(seen)]
