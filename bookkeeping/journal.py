"""
Journal Module

Transactions are the individual posting lines of the ledger. A journal
entry groups the lines sharing one journal_entry_id and must balance:
total debits equal total credits. Both are immutable once created.
"""

from dataclasses import dataclass
from decimal import Decimal
from enum import Enum
from typing import Dict, Iterable, List, Optional, Set, Tuple

from .accounts import Account
from .amounts import AmountLike, ZERO, is_close, to_decimal, total
from .config import get_config
from .errors import InvalidAmountError, InvalidEntryError, UnbalancedEntryError


class TransactionType(Enum):
    """Side of a posting line"""
    DEBIT = "Cargo"
    CREDIT = "Abono"


@dataclass(frozen=True)
class Transaction:
    """
    Single posting line against one account
    total is always amount + iva
    """
    id: str
    journal_entry_id: str
    date: str  # ISO YYYY-MM-DD, compared as a string
    account: Account
    description: str
    type: TransactionType
    amount: Decimal
    iva: Decimal = ZERO
    total: Optional[Decimal] = None

    def __post_init__(self):
        amount = to_decimal(self.amount)
        iva = to_decimal(self.iva)
        if amount < ZERO or iva < ZERO:
            raise InvalidAmountError(
                f"Transaction amounts cannot be negative: amount={amount}, iva={iva}",
                amount=amount
            )

        expected_total = amount + iva
        line_total = expected_total if self.total is None else to_decimal(self.total)
        if line_total != expected_total:
            raise InvalidAmountError(
                f"Transaction total {line_total} does not equal amount + iva ({expected_total})",
                amount=line_total
            )

        object.__setattr__(self, 'amount', amount)
        object.__setattr__(self, 'iva', iva)
        object.__setattr__(self, 'total', line_total)

    @property
    def is_debit(self) -> bool:
        return self.type == TransactionType.DEBIT

    @property
    def is_credit(self) -> bool:
        return self.type == TransactionType.CREDIT

    @property
    def debit_amount(self) -> Decimal:
        return self.total if self.is_debit else ZERO

    @property
    def credit_amount(self) -> Decimal:
        return self.total if self.is_credit else ZERO

    def to_dict(self) -> Dict:
        return {
            'id': self.id,
            'journal_entry_id': self.journal_entry_id,
            'date': self.date,
            'account': self.account.to_dict(),
            'description': self.description,
            'type': self.type.value,
            'amount': str(self.amount),
            'iva': str(self.iva),
            'total': str(self.total)
        }


@dataclass(frozen=True)
class JournalEntry:
    """
    Balanced group of transactions sharing one journal entry id.
    Construction fails for empty or unbalanced line sets.
    """
    id: str
    date: str
    description: str
    lines: Tuple[Transaction, ...]
    tolerance: Optional[Decimal] = None

    def __post_init__(self):
        object.__setattr__(self, 'lines', tuple(self.lines))
        if self.tolerance is None:
            object.__setattr__(self, 'tolerance', get_config().entry_tolerance)
        self.validate_balance()

    def validate_balance(self) -> None:
        """
        Validate that total debits equal total credits
        This is the fundamental rule of double-entry bookkeeping
        """
        if not self.lines:
            raise UnbalancedEntryError(ZERO, ZERO, "Journal entry must have at least one line")

        for line in self.lines:
            if line.journal_entry_id != self.id:
                raise InvalidEntryError(
                    f"Line {line.id} belongs to journal entry {line.journal_entry_id}, not {self.id}"
                )

        debits = self.total_debits
        credits = self.total_credits
        if not is_close(debits, credits, self.tolerance):
            raise UnbalancedEntryError(debits, credits)
        if debits <= ZERO:
            raise UnbalancedEntryError(debits, credits, "Journal entry must move a positive amount")

    @property
    def total_debits(self) -> Decimal:
        return total(line.total for line in self.lines if line.is_debit)

    @property
    def total_credits(self) -> Decimal:
        return total(line.total for line in self.lines if line.is_credit)

    def get_affected_accounts(self) -> Set[str]:
        """Get set of account codes affected by this entry"""
        return {line.account.code for line in self.lines}

    def to_dict(self) -> Dict:
        return {
            'id': self.id,
            'date': self.date,
            'description': self.description,
            'lines': [line.to_dict() for line in self.lines],
            'total_debits': str(self.total_debits),
            'total_credits': str(self.total_credits)
        }


def group_journal_entries(
    transactions: Iterable[Transaction],
    tolerance: Optional[AmountLike] = None
) -> List[JournalEntry]:
    """
    Reconstruct journal entries from a flat transaction list

    Date and description of an entry come from its first line. Entries are
    returned newest first (date descending, then id descending), the
    ordering of the daily journal.

    Raises:
        UnbalancedEntryError: If a stored group does not balance
    """
    grouped: Dict[str, List[Transaction]] = {}
    for transaction in transactions:
        grouped.setdefault(transaction.journal_entry_id, []).append(transaction)

    tolerance = None if tolerance is None else to_decimal(tolerance)
    entries = [
        JournalEntry(
            id=entry_id,
            date=lines[0].date,
            description=lines[0].description,
            lines=tuple(lines),
            tolerance=tolerance
        )
        for entry_id, lines in grouped.items()
    ]
    entries.sort(key=lambda entry: (entry.date, entry.id), reverse=True)
    return entries


def append_entry(
    transactions: Iterable[Transaction],
    entry: JournalEntry
) -> List[Transaction]:
    """
    Append every line of a journal entry in one batch

    Returns a new list; the input is never modified, so a caller that
    swaps its list only on success can never observe a partial entry.
    """
    current = list(transactions)
    existing_ids = {transaction.id for transaction in current}
    if any(transaction.journal_entry_id == entry.id for transaction in current):
        raise InvalidEntryError(f"Journal entry {entry.id} has already been recorded")
    for line in entry.lines:
        if line.id in existing_ids:
            raise InvalidEntryError(f"Transaction {line.id} has already been recorded")
    return current + list(entry.lines)
