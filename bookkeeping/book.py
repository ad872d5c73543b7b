"""
Book Module

Holds one snapshot of the chart of accounts and the transaction list and
exposes the bookkeeping operations over it. Every mutation computes a new
tuple through the pure catalog/journal functions and replaces the old one
only when it succeeds, so a failed operation leaves the book untouched and
a journal entry is never visible half-recorded.
"""

from typing import Callable, Iterable, List, Optional, Tuple

from .accounts import Account, add_account, default_chart_of_accounts, delete_account, postable_accounts
from .amounts import AmountLike
from .builder import AccountRef, EntryPreview, build_journal_entry, new_id, preview_journal_entry
from .config import BookkeepingConfig, get_config
from .journal import JournalEntry, Transaction, append_entry, group_journal_entries
from .logging_config import get_logger, log_action
from .posting import (
    AccountLedger, LedgerFilter, TrialBalance, account_options,
    compute_general_ledger, compute_trial_balance
)
from .statements import FinancialStatements, build_financial_statements

logger = get_logger("bookkeeping.book")


class Book:
    """
    Caller-owned set of books: accounts plus posted transactions
    """

    def __init__(
        self,
        accounts: Optional[Iterable[Account]] = None,
        transactions: Iterable[Transaction] = (),
        settings: Optional[BookkeepingConfig] = None,
        id_factory: Callable[[], str] = new_id
    ):
        self.settings = settings or get_config()
        self.id_factory = id_factory
        self._accounts: Tuple[Account, ...] = tuple(
            default_chart_of_accounts() if accounts is None else accounts
        )
        self._transactions: Tuple[Transaction, ...] = tuple(transactions)

    @property
    def accounts(self) -> Tuple[Account, ...]:
        return self._accounts

    @property
    def transactions(self) -> Tuple[Transaction, ...]:
        return self._transactions

    @property
    def postable_accounts(self) -> List[Account]:
        return postable_accounts(self._accounts)

    def add_account(self, code: str, name: str) -> Account:
        """
        Add an account to the chart of accounts

        Raises:
            InvalidAccountError: If code or name is blank
            DuplicateCodeError: If the code already exists
        """
        account = Account(code=code, name=name)
        self._accounts = tuple(add_account(self._accounts, account))

        log_action(
            logger, "info", f"Account {account.code} added",
            action="account_added", resource=account.code,
            extra={"name": account.name}
        )
        return account

    def delete_account(self, code: str) -> None:
        """
        Delete an unused leaf of the chart of accounts

        Raises:
            AccountNotFoundError: If the code does not exist
            AccountInUseError: If a transaction references it
            AccountHasChildrenError: If other accounts sit below it
        """
        self._accounts = tuple(delete_account(self._accounts, code, self._transactions))

        log_action(
            logger, "info", f"Account {code} deleted",
            action="account_deleted", resource=code
        )

    def preview_entry(
        self,
        debit_account: Optional[AccountRef],
        credit_account: Optional[AccountRef],
        base_amount: Optional[AmountLike],
        apply_tax: bool = False
    ) -> EntryPreview:
        return preview_journal_entry(
            self._accounts, debit_account, credit_account, base_amount,
            apply_tax, settings=self.settings
        )

    def record_entry(
        self,
        date: str,
        description: str,
        debit_account: AccountRef,
        credit_account: AccountRef,
        base_amount: AmountLike,
        apply_tax: bool = False
    ) -> JournalEntry:
        """
        Build a journal entry and append all of its lines at once

        Returns:
            The recorded JournalEntry

        Raises:
            LedgerError: Any builder validation failure; nothing is recorded
        """
        entry = build_journal_entry(
            self._accounts,
            debit_account=debit_account,
            credit_account=credit_account,
            base_amount=base_amount,
            apply_tax=apply_tax,
            date=date,
            description=description,
            id_factory=self.id_factory,
            settings=self.settings
        )
        self._transactions = tuple(append_entry(self._transactions, entry))

        log_action(
            logger, "info", f"Journal entry {entry.id} recorded",
            action="journal_entry_recorded", resource=entry.id,
            extra={
                "date": entry.date,
                "line_count": len(entry.lines),
                "accounts": sorted(entry.get_affected_accounts()),
                "total": str(entry.total_debits)
            }
        )
        return entry

    def journal_entries(self) -> List[JournalEntry]:
        """Recorded entries, newest first"""
        return group_journal_entries(self._transactions, tolerance=self.settings.entry_tolerance)

    def general_ledger(self, ledger_filter: Optional[LedgerFilter] = None) -> List[AccountLedger]:
        return compute_general_ledger(self._transactions, ledger_filter)

    def trial_balance(self, ledger_filter: Optional[LedgerFilter] = None) -> TrialBalance:
        return compute_trial_balance(
            self._transactions, ledger_filter, tolerance=self.settings.statement_tolerance
        )

    def ledger_accounts(self) -> List[Account]:
        """Accounts that can be picked in the ledger filter"""
        return account_options(self._transactions)

    def financial_statements(self) -> FinancialStatements:
        return build_financial_statements(
            self._accounts, self._transactions, tolerance=self.settings.statement_tolerance
        )
