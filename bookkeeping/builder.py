"""
Journal Entry Builder

Turns a pair of selected accounts and a base amount into a balanced,
tax-aware journal entry:

- Revenue (code 4...): the other account is debited base + tax, revenue is
  credited base and the tax payable account is credited the tax.
- Expense (code 5...): expense is debited base, the tax receivable account
  is debited the tax and the other account is credited base + tax.
- Anything else is a plain transfer of the base amount; tax does not apply.
"""

import logging
import uuid
from dataclasses import dataclass
from decimal import Decimal
from typing import Callable, Iterable, List, Optional, Tuple, Union

from .accounts import Account, AccountClass, find_account, postable_accounts
from .amounts import AmountLike, ZERO, is_close, quantize, to_decimal, total
from .config import BookkeepingConfig, get_config
from .errors import (
    AccountNotFoundError, InvalidAmountError, InvalidEntryError, LedgerError,
    MissingTaxAccountError, NonPostableAccountError, SameAccountError,
    UnbalancedEntryError
)
from .journal import JournalEntry, Transaction, TransactionType

logger = logging.getLogger(__name__)

AccountRef = Union[Account, str]

TAX_PAYABLE_LABEL = "IVA Debito Fiscal"
TAX_RECEIVABLE_LABEL = "IVA Credito Fiscal"


def new_id() -> str:
    return str(uuid.uuid4())


@dataclass(frozen=True)
class ProposedLine:
    """Line of an entry before it is turned into a Transaction"""
    code: str
    name: str
    type: TransactionType
    total: Decimal
    description: str
    account: Optional[Account] = None  # None when the tax account is missing

    @property
    def debit(self) -> Decimal:
        return self.total if self.type == TransactionType.DEBIT else ZERO

    @property
    def credit(self) -> Decimal:
        return self.total if self.type == TransactionType.CREDIT else ZERO

    @property
    def label(self) -> str:
        return f"{self.code} - {self.name}"


@dataclass(frozen=True)
class EntryPreview:
    """What an entry would look like, without validation errors raised"""
    lines: Tuple[ProposedLine, ...] = ()
    total_debits: Decimal = ZERO
    total_credits: Decimal = ZERO
    is_valid: bool = False
    error: Optional[str] = None

    def to_dict(self) -> dict:
        return {
            'lines': [
                {'account': line.label, 'debit': str(line.debit), 'credit': str(line.credit)}
                for line in self.lines
            ],
            'total_debits': str(self.total_debits),
            'total_credits': str(self.total_credits),
            'is_valid': self.is_valid,
            'error': self.error
        }


def _resolve(postables: List[Account], catalog: List[Account], ref: AccountRef) -> Account:
    code = ref.code if isinstance(ref, Account) else str(ref).strip()
    account = find_account(postables, code)
    if account is not None:
        return account
    if find_account(catalog, code) is not None:
        raise NonPostableAccountError(code)
    raise AccountNotFoundError(code)


def _tax_line(
    postables: List[Account],
    code: str,
    placeholder: str,
    side: TransactionType,
    tax: Decimal,
    description: str
) -> ProposedLine:
    account = find_account(postables, code)
    return ProposedLine(
        code=code,
        name=account.name if account else placeholder,
        type=side,
        total=tax,
        description=description,
        account=account
    )


def _line(account: Account, side: TransactionType, amount: Decimal, description: str) -> ProposedLine:
    return ProposedLine(account.code, account.name, side, amount, description, account)


def plan_lines(
    postables: List[Account],
    first: Account,
    second: Account,
    base: Decimal,
    apply_tax: bool,
    description: str,
    settings: BookkeepingConfig,
    tax_rate: Decimal
) -> List[ProposedLine]:
    """
    Derive the lines of an entry from the two selected accounts.
    Zero lines are kept here and dropped by the caller.
    """
    tax = quantize(base * tax_rate, settings.amount_precision) if apply_tax else ZERO
    gross = base + tax
    tax_description = f"{settings.tax_line_prefix}{description}"

    def role(account_class: AccountClass) -> Optional[Account]:
        if first.account_class == account_class:
            return first
        if second.account_class == account_class:
            return second
        return None

    revenue_account = role(AccountClass.REVENUE)
    expense_account = role(AccountClass.EXPENSE)
    lines = []

    if revenue_account is not None:
        tender = second if revenue_account is first else first
        lines.append(_line(tender, TransactionType.DEBIT, gross, description))
        lines.append(_line(revenue_account, TransactionType.CREDIT, base, description))
        if apply_tax:
            lines.append(_tax_line(postables, settings.tax_payable_code, TAX_PAYABLE_LABEL,
                                   TransactionType.CREDIT, tax, tax_description))
    elif expense_account is not None:
        tender = second if expense_account is first else first
        lines.append(_line(expense_account, TransactionType.DEBIT, base, description))
        if apply_tax:
            lines.append(_tax_line(postables, settings.tax_receivable_code, TAX_RECEIVABLE_LABEL,
                                   TransactionType.DEBIT, tax, tax_description))
        lines.append(_line(tender, TransactionType.CREDIT, gross, description))
    else:
        lines.append(_line(first, TransactionType.DEBIT, base, description))
        lines.append(_line(second, TransactionType.CREDIT, base, description))

    return lines


def _prepare(
    accounts: Iterable[Account],
    debit_account: AccountRef,
    credit_account: AccountRef,
    base_amount: AmountLike,
    apply_tax: bool,
    date: str,
    description: str,
    tax_rate: Optional[AmountLike],
    settings: Optional[BookkeepingConfig]
) -> Tuple[List[ProposedLine], BookkeepingConfig]:
    settings = settings or get_config()
    description = (description or "").strip()
    if not date or not description:
        raise InvalidEntryError("Journal entry requires a date and a description")

    base = to_decimal(base_amount)
    if base <= ZERO:
        raise InvalidAmountError(f"Amount must be greater than zero, got {base}", amount=base)

    rate = settings.tax_rate if tax_rate is None else to_decimal(tax_rate)
    if rate <= ZERO:
        raise InvalidAmountError(f"Tax rate must be positive, got {rate}", amount=rate)

    catalog = list(accounts)
    postables = postable_accounts(catalog)
    first = _resolve(postables, catalog, debit_account)
    second = _resolve(postables, catalog, credit_account)
    if first.code == second.code:
        raise SameAccountError(first.code)

    lines = plan_lines(postables, first, second, base, apply_tax, description, settings, rate)
    return lines, settings


def build_journal_entry(
    accounts: Iterable[Account],
    debit_account: AccountRef,
    credit_account: AccountRef,
    base_amount: AmountLike,
    apply_tax: bool,
    date: str,
    description: str,
    tax_rate: Optional[AmountLike] = None,
    id_factory: Callable[[], str] = new_id,
    settings: Optional[BookkeepingConfig] = None
) -> JournalEntry:
    """
    Build a balanced journal entry from two selected accounts

    Args:
        accounts: Chart of accounts the selection is resolved against
        debit_account: Account (or code) chosen for the debit side
        credit_account: Account (or code) chosen for the credit side
        base_amount: Amount before tax, must be positive
        apply_tax: Whether to add the tax line for revenue/expense flows
        date: ISO YYYY-MM-DD entry date
        description: Entry description shared by every line
        tax_rate: Overrides the configured tax rate
        id_factory: Produces the entry id and one id per line
        settings: Overrides the global configuration

    Returns:
        JournalEntry whose lines all share one fresh journal entry id

    Raises:
        SameAccountError: Both sides point at the same account
        InvalidAmountError: base_amount is not positive
        MissingTaxAccountError: Tax applies but the tax account is absent
        UnbalancedEntryError: The derived lines do not balance
    """
    lines, settings = _prepare(
        accounts, debit_account, credit_account, base_amount,
        apply_tax, date, description, tax_rate, settings
    )

    for line in lines:
        if line.account is None:
            raise MissingTaxAccountError(line.code)

    lines = [line for line in lines if line.total > ZERO]
    debits = total(line.debit for line in lines)
    credits = total(line.credit for line in lines)
    if not lines or not is_close(debits, credits, settings.entry_tolerance) or debits <= ZERO:
        raise UnbalancedEntryError(debits, credits)

    entry_id = id_factory()
    description = description.strip()
    transactions = tuple(
        Transaction(
            id=id_factory(),
            journal_entry_id=entry_id,
            date=date,
            account=line.account,
            description=line.description,
            type=line.type,
            amount=line.total,
            iva=ZERO,
            total=line.total
        )
        for line in lines
    )

    entry = JournalEntry(
        id=entry_id,
        date=date,
        description=description,
        lines=transactions,
        tolerance=settings.entry_tolerance
    )
    logger.debug("Built journal entry %s with %d lines", entry.id, len(entry.lines))
    return entry


def preview_journal_entry(
    accounts: Iterable[Account],
    debit_account: Optional[AccountRef],
    credit_account: Optional[AccountRef],
    base_amount: Optional[AmountLike],
    apply_tax: bool,
    date: str = "preview",
    description: str = "preview",
    tax_rate: Optional[AmountLike] = None,
    settings: Optional[BookkeepingConfig] = None
) -> EntryPreview:
    """
    Preview the lines an entry would produce

    Never raises for invalid selections: an incomplete form or a base amount
    that is not a positive number yields an empty, invalid preview and a
    rule violation is reported in the error field.
    A missing tax account is shown under its well-known code.
    """
    if not debit_account or not credit_account or base_amount in (None, ""):
        return EntryPreview()
    try:
        if to_decimal(base_amount) <= ZERO:
            return EntryPreview()
    except InvalidAmountError:
        return EntryPreview()

    try:
        lines, settings = _prepare(
            accounts, debit_account, credit_account, base_amount,
            apply_tax, date, description, tax_rate, settings
        )
    except LedgerError as e:
        return EntryPreview(error=str(e))

    debits = total(line.debit for line in lines)
    credits = total(line.credit for line in lines)
    shown = tuple(line for line in lines if line.total > ZERO)
    missing = next((line.code for line in lines if line.account is None), None)

    return EntryPreview(
        lines=shown,
        total_debits=debits,
        total_credits=credits,
        is_valid=is_close(debits, credits, settings.entry_tolerance) and debits > ZERO and missing is None,
        error=str(MissingTaxAccountError(missing)) if missing else None
    )
