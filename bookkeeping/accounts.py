"""
Chart of Accounts Module

Manages the account catalog. Account codes are hierarchical by shape:
a single digit is an account class, two digits a sub-class, four digits a
postable leaf and a dotted code a sub-leaf under a four digit parent.
Only leaf accounts receive postings; the rest aggregate their children.

All catalog operations return a new list and never modify their input.
"""

from collections import Counter
from dataclasses import dataclass
from enum import Enum
from typing import Iterable, List, Optional

from .errors import (
    AccountHasChildrenError, AccountInUseError, AccountNotFoundError,
    DuplicateCodeError, InvalidAccountError
)


class NormalBalance(Enum):
    """Side on which an account's balance increases"""
    DEBIT = "debit"
    CREDIT = "credit"


class AccountClass(Enum):
    """Account classes keyed by the leading digit of the code"""
    ASSET = "1"        # Debit normal balance
    LIABILITY = "2"    # Credit normal balance
    EQUITY = "3"       # Credit normal balance
    REVENUE = "4"      # Credit normal balance
    EXPENSE = "5"      # Debit normal balance
    OTHER = ""         # Unclassified; excluded from statements

    @classmethod
    def from_code(cls, code: str) -> 'AccountClass':
        leading = code[:1]
        for member in cls:
            if member.value and member.value == leading:
                return member
        return cls.OTHER


DEBIT_NORMAL_PREFIXES = frozenset({'1', '5', '6'})


@dataclass(frozen=True)
class Account:
    """
    Catalog account identified by its code.
    Postings embed the Account by value, so renaming an account
    does not rewrite historical transactions.
    """
    code: str
    name: str

    def __post_init__(self):
        code = (self.code or "").strip()
        name = (self.name or "").strip()
        if not code or not name:
            raise InvalidAccountError("Account code and name are required")
        object.__setattr__(self, 'code', code)
        object.__setattr__(self, 'name', name)

    @property
    def is_postable(self) -> bool:
        return is_postable(self.code)

    @property
    def account_class(self) -> AccountClass:
        return AccountClass.from_code(self.code)

    @property
    def normal_balance(self) -> NormalBalance:
        return NormalBalance.DEBIT if is_debit_normal(self.code) else NormalBalance.CREDIT

    @property
    def level(self) -> int:
        """Indentation depth derived from the code shape"""
        return account_level(self.code)

    @property
    def label(self) -> str:
        return f"{self.code} - {self.name}"

    def to_dict(self) -> dict:
        return {'code': self.code, 'name': self.name}


def is_postable(code: str) -> bool:
    """Leaf accounts (four digits or dotted) can be posted to"""
    return len(code) >= 4 or '.' in code


def is_parent_of(parent_code: str, child_code: str) -> bool:
    """Prefix relation used for rollups: "1" is the parent of "1101" """
    return child_code.startswith(parent_code) and parent_code != child_code


def is_debit_normal(code: str) -> bool:
    return code[:1] in DEBIT_NORMAL_PREFIXES


def account_class(code: str) -> AccountClass:
    return AccountClass.from_code(code)


def account_level(code: str) -> int:
    if '.' in code:
        return 3
    if len(code) == 1:
        return 0
    if len(code) == 2:
        return 1
    return 2


def sort_accounts(accounts: Iterable[Account]) -> List[Account]:
    """Sort by code using plain string comparison ("10" before "2")"""
    return sorted(accounts, key=lambda account: account.code)


def find_account(accounts: Iterable[Account], code: str) -> Optional[Account]:
    for account in accounts:
        if account.code == code:
            return account
    return None


def postable_accounts(accounts: Iterable[Account]) -> List[Account]:
    return [account for account in accounts if account.is_postable]


def child_codes(accounts: Iterable[Account], code: str) -> List[str]:
    return [account.code for account in accounts if is_parent_of(code, account.code)]


def is_parent_account(accounts: Iterable[Account], code: str) -> bool:
    """Whether any catalog account sits below the given code"""
    return bool(child_codes(accounts, code))


def used_account_codes(transactions: Iterable) -> Counter:
    """Number of transactions referencing each account code"""
    return Counter(transaction.account.code for transaction in transactions)


def add_account(existing: Iterable[Account], candidate: Account) -> List[Account]:
    """
    Add an account to the catalog

    Args:
        existing: Current catalog
        candidate: Account to add

    Returns:
        New catalog sorted by code

    Raises:
        DuplicateCodeError: If the code is already present
    """
    current = list(existing)
    if find_account(current, candidate.code) is not None:
        raise DuplicateCodeError(candidate.code)
    return sort_accounts(current + [candidate])


def delete_account(
    existing: Iterable[Account],
    code: str,
    transactions: Iterable = ()
) -> List[Account]:
    """
    Remove an account from the catalog

    Args:
        existing: Current catalog
        code: Code of the account to remove
        transactions: Posted transactions that may reference the account

    Returns:
        New catalog without the account

    Raises:
        AccountNotFoundError: If the code is not in the catalog
        AccountInUseError: If a transaction references the account
        AccountHasChildrenError: If other accounts sit below it
    """
    current = list(existing)
    if find_account(current, code) is None:
        raise AccountNotFoundError(code)

    references = used_account_codes(transactions)[code]
    if references:
        raise AccountInUseError(code, references)

    children = child_codes(current, code)
    if children:
        raise AccountHasChildrenError(code, children)

    return [account for account in current if account.code != code]


DEFAULT_CHART = (
    ("1", "Activo"),
    ("11", "Activo Corriente"),
    ("1101", "Efectivo y Equivalentes"),
    ("1102", "Cuentas por Cobrar"),
    ("1103", "IVA Credito Fiscal"),
    ("1104", "Inventarios"),
    ("12", "Activo No Corriente"),
    ("1201", "Propiedad, Planta y Equipo"),
    ("2", "Pasivo"),
    ("21", "Pasivo Corriente"),
    ("2101", "Cuentas por Pagar"),
    ("2102", "Prestamos por Pagar"),
    ("2103", "Impuestos por Pagar"),
    ("2103.01", "IVA Debito Fiscal"),
    ("3", "Capital"),
    ("31", "Capital Social"),
    ("3101", "Capital Suscrito"),
    ("4", "Ingresos"),
    ("41", "Ingresos de Operacion"),
    ("4101", "Ventas"),
    ("4102", "Servicios"),
    ("5", "Gastos"),
    ("51", "Gastos de Operacion"),
    ("5101", "Sueldos y Salarios"),
    ("5102", "Alquileres"),
    ("5103", "Servicios Basicos"),
)


def default_chart_of_accounts() -> List[Account]:
    """Starter chart that includes both well-known tax accounts"""
    return sort_accounts(Account(code, name) for code, name in DEFAULT_CHART)
