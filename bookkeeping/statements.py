"""
Statement Aggregator

Rolls posted balances up through the chart of accounts and assembles the
balance sheet, income statement, statement of capital and trial balance.

A parent account's balance is the sum of every postable balance whose
code starts with the parent's code. This is a string prefix match, not a
tree walk: "1" also collects postings under "10..." codes.
"""

import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import Dict, Iterable, List, Optional, Tuple

from .accounts import Account, AccountClass, account_level, postable_accounts
from .amounts import ZERO, to_decimal, total
from .config import get_config
from .journal import Transaction
from .posting import TrialBalance, account_balances, compute_trial_balance

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ReportAccount:
    """Account row on a financial statement"""
    code: str
    name: str
    balance: Decimal
    is_parent: bool

    @property
    def level(self) -> int:
        return account_level(self.code)

    def to_dict(self) -> Dict:
        return {
            'code': self.code,
            'name': self.name,
            'balance': str(self.balance),
            'is_parent': self.is_parent,
            'level': self.level
        }


@dataclass(frozen=True)
class StatementSection:
    """Rows of one account class and the total of its leaf rows"""
    account_class: AccountClass
    rows: Tuple[ReportAccount, ...]

    @property
    def total(self) -> Decimal:
        return total(row.balance for row in self.rows if not row.is_parent)

    def non_zero_rows(self) -> List[ReportAccount]:
        return [row for row in self.rows if row.balance != ZERO]

    def to_dict(self) -> Dict:
        return {
            'account_class': self.account_class.name.lower(),
            'rows': [row.to_dict() for row in self.rows],
            'total': str(self.total)
        }


@dataclass(frozen=True)
class BalanceSheet:
    assets: StatementSection
    liabilities: StatementSection
    equity: StatementSection
    total_assets: Decimal
    total_liabilities: Decimal
    total_equity: Decimal
    net_income: Decimal
    total_equity_and_liabilities: Decimal
    balance_check: Decimal
    is_balanced: bool

    def to_dict(self) -> Dict:
        return {
            'assets': self.assets.to_dict(),
            'liabilities': self.liabilities.to_dict(),
            'equity': self.equity.to_dict(),
            'total_assets': str(self.total_assets),
            'total_liabilities': str(self.total_liabilities),
            'total_equity': str(self.total_equity),
            'net_income': str(self.net_income),
            'total_equity_and_liabilities': str(self.total_equity_and_liabilities),
            'balance_check': str(self.balance_check),
            'is_balanced': self.is_balanced
        }


@dataclass(frozen=True)
class IncomeStatement:
    revenues: StatementSection
    expenses: StatementSection
    total_revenues: Decimal
    total_expenses: Decimal
    net_income: Decimal

    def to_dict(self) -> Dict:
        return {
            'revenues': self.revenues.to_dict(),
            'expenses': self.expenses.to_dict(),
            'total_revenues': str(self.total_revenues),
            'total_expenses': str(self.total_expenses),
            'net_income': str(self.net_income)
        }


@dataclass(frozen=True)
class StatementOfCapital:
    equity: StatementSection
    total_equity: Decimal
    net_income: Decimal
    final_capital: Decimal

    def to_dict(self) -> Dict:
        return {
            'equity': self.equity.to_dict(),
            'total_equity': str(self.total_equity),
            'net_income': str(self.net_income),
            'final_capital': str(self.final_capital)
        }


@dataclass(frozen=True)
class FinancialStatements:
    """All statements derived from one snapshot of accounts and postings"""
    assets: StatementSection
    liabilities: StatementSection
    equity: StatementSection
    revenues: StatementSection
    expenses: StatementSection
    trial_balance: TrialBalance
    tolerance: Decimal

    @property
    def total_assets(self) -> Decimal:
        return self.assets.total

    @property
    def total_liabilities(self) -> Decimal:
        return self.liabilities.total

    @property
    def total_equity(self) -> Decimal:
        return self.equity.total

    @property
    def total_revenues(self) -> Decimal:
        return self.revenues.total

    @property
    def total_expenses(self) -> Decimal:
        return self.expenses.total

    @property
    def net_income(self) -> Decimal:
        return self.total_revenues - self.total_expenses

    @property
    def total_equity_and_liabilities(self) -> Decimal:
        return self.total_liabilities + self.total_equity + self.net_income

    @property
    def balance_check(self) -> Decimal:
        return self.total_assets - self.total_equity_and_liabilities

    @property
    def is_balanced(self) -> bool:
        return abs(self.balance_check) <= self.tolerance

    def balance_sheet(self) -> BalanceSheet:
        return BalanceSheet(
            assets=self.assets,
            liabilities=self.liabilities,
            equity=self.equity,
            total_assets=self.total_assets,
            total_liabilities=self.total_liabilities,
            total_equity=self.total_equity,
            net_income=self.net_income,
            total_equity_and_liabilities=self.total_equity_and_liabilities,
            balance_check=self.balance_check,
            is_balanced=self.is_balanced
        )

    def income_statement(self) -> IncomeStatement:
        return IncomeStatement(
            revenues=self.revenues,
            expenses=self.expenses,
            total_revenues=self.total_revenues,
            total_expenses=self.total_expenses,
            net_income=self.net_income
        )

    def statement_of_capital(self) -> StatementOfCapital:
        return StatementOfCapital(
            equity=self.equity,
            total_equity=self.total_equity,
            net_income=self.net_income,
            final_capital=self.total_equity + self.net_income
        )

    def find_row(self, code: str) -> Optional[ReportAccount]:
        for section in (self.assets, self.liabilities, self.equity, self.revenues, self.expenses):
            for row in section.rows:
                if row.code == code:
                    return row
        return None

    def to_dict(self) -> Dict:
        return {
            'balance_sheet': self.balance_sheet().to_dict(),
            'income_statement': self.income_statement().to_dict(),
            'statement_of_capital': self.statement_of_capital().to_dict(),
            'trial_balance': self.trial_balance.to_dict()
        }


def postable_balances(
    accounts: Iterable[Account],
    transactions: Iterable[Transaction]
) -> Dict[str, Decimal]:
    """Balance of every postable catalog account, zero when never posted"""
    posted = account_balances(transactions)
    return {account.code: posted.get(account.code, ZERO) for account in postable_accounts(accounts)}


def rollup_balance(balances: Dict[str, Decimal], parent_code: str) -> Decimal:
    """Sum of the postable balances whose code starts with parent_code"""
    return total(balance for code, balance in balances.items() if code.startswith(parent_code))


def build_financial_statements(
    accounts: Iterable[Account],
    transactions: Iterable[Transaction],
    tolerance: Optional[Decimal] = None
) -> FinancialStatements:
    """
    Build every financial statement from the full transaction history

    Balances are computed for postable accounts first; parent balances are
    rolled up only once all of them are known. Parents whose rollup is zero
    are left out, postable accounts are always listed. Accounts whose code
    does not start with 1-5 are excluded from every statement.
    """
    catalog = list(accounts)
    history = list(transactions)
    balances = postable_balances(catalog, history)

    sections: Dict[AccountClass, List[ReportAccount]] = {
        account_class: [] for account_class in AccountClass if account_class != AccountClass.OTHER
    }

    for account in catalog:
        is_parent = account.code not in balances
        balance = rollup_balance(balances, account.code) if is_parent else balances[account.code]

        if is_parent and balance == ZERO:
            continue

        account_class = account.account_class
        if account_class == AccountClass.OTHER:
            continue

        sections[account_class].append(ReportAccount(
            code=account.code,
            name=account.name,
            balance=balance,
            is_parent=is_parent
        ))

    tolerance = get_config().statement_tolerance if tolerance is None else to_decimal(tolerance)
    statements = FinancialStatements(
        assets=StatementSection(AccountClass.ASSET, tuple(sections[AccountClass.ASSET])),
        liabilities=StatementSection(AccountClass.LIABILITY, tuple(sections[AccountClass.LIABILITY])),
        equity=StatementSection(AccountClass.EQUITY, tuple(sections[AccountClass.EQUITY])),
        revenues=StatementSection(AccountClass.REVENUE, tuple(sections[AccountClass.REVENUE])),
        expenses=StatementSection(AccountClass.EXPENSE, tuple(sections[AccountClass.EXPENSE])),
        trial_balance=compute_trial_balance(history, tolerance=tolerance),
        tolerance=tolerance
    )

    if not statements.is_balanced:
        logger.warning("Balance sheet does not tie out: difference %s", statements.balance_check)

    return statements
