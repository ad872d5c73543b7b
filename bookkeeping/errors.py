"""
Ledger Error Types

Validation failures raised when a requested mutation of the chart of
accounts or the journal cannot be applied. The caller's data is left
unchanged whenever one of these is raised.
"""

from decimal import Decimal
from typing import Optional


class LedgerError(ValueError):
    """Base class for all bookkeeping validation failures"""


class InvalidAccountError(LedgerError):
    """Account code or name is missing"""


class DuplicateCodeError(LedgerError):
    """An account with the same code already exists in the catalog"""

    def __init__(self, code: str):
        self.code = code
        super().__init__(f"Account code {code} already exists")


class AccountNotFoundError(LedgerError):
    """Referenced account code is not in the catalog"""

    def __init__(self, code: str):
        self.code = code
        super().__init__(f"Account {code} not found")


class AccountInUseError(LedgerError):
    """Account is referenced by at least one transaction"""

    def __init__(self, code: str, transaction_count: int):
        self.code = code
        self.transaction_count = transaction_count
        super().__init__(
            f"Cannot delete account {code}: referenced by "
            f"{transaction_count} transaction(s)"
        )


class AccountHasChildrenError(LedgerError):
    """Account is the prefix-parent of other accounts"""

    def __init__(self, code: str, children: list):
        self.code = code
        self.children = children
        super().__init__(
            f"Cannot delete account {code}: it is the parent of "
            f"{', '.join(children)}"
        )


class NonPostableAccountError(LedgerError):
    """Transactions may only reference postable (leaf) accounts"""

    def __init__(self, code: str):
        self.code = code
        super().__init__(f"Account {code} is an aggregation account and cannot be posted to")


class SameAccountError(LedgerError):
    """Debit and credit side of an entry point at the same account"""

    def __init__(self, code: str):
        self.code = code
        super().__init__(f"Debit and credit account cannot be the same ({code})")


class InvalidAmountError(LedgerError):
    """Amount is zero, negative or inconsistent"""

    def __init__(self, message: str, amount: Optional[Decimal] = None):
        self.amount = amount
        super().__init__(message)


class InvalidEntryError(LedgerError):
    """Entry is missing its date or description"""


class MissingTaxAccountError(LedgerError):
    """The well-known tax account needed for a taxed entry is absent"""

    def __init__(self, code: str):
        self.code = code
        super().__init__(f"Tax account {code} not found in the chart of accounts")


class UnbalancedEntryError(LedgerError):
    """Debits and credits of a journal entry do not match"""

    def __init__(self, total_debits: Decimal, total_credits: Decimal, message: Optional[str] = None):
        self.total_debits = total_debits
        self.total_credits = total_credits
        super().__init__(
            message or
            f"Journal entry not balanced: debits={total_debits}, credits={total_credits}"
        )
