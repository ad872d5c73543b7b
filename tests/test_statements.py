"""
Test suite for the statement aggregator

Tests parent rollups, section classification, statement totals and the
tie-out of the balance sheet.
"""

import itertools

import pytest
from decimal import Decimal

from bookkeeping.accounts import Account, AccountClass
from bookkeeping.builder import build_journal_entry
from bookkeeping.config import BookkeepingConfig
from bookkeeping.journal import Transaction, TransactionType, append_entry
from bookkeeping.statements import (
    build_financial_statements, postable_balances, rollup_balance
)


CATALOG = [
    Account("1", "Activo"),
    Account("11", "Activo Corriente"),
    Account("1101", "Caja"),
    Account("1103", "IVA Credito Fiscal"),
    Account("12", "Activo No Corriente"),
    Account("1201", "Equipo"),
    Account("2", "Pasivo"),
    Account("21", "Pasivo Corriente"),
    Account("2101", "Cuentas por Pagar"),
    Account("2103.01", "IVA Debito Fiscal"),
    Account("3", "Capital"),
    Account("3101", "Capital Social"),
    Account("4", "Ingresos"),
    Account("4001", "Ventas"),
    Account("5", "Gastos"),
    Account("5101", "Alquiler"),
    Account("6", "Otros"),
    Account("6001", "Otros Gastos"),
]


@pytest.fixture
def settings():
    return BookkeepingConfig(tax_rate=Decimal('0.13'))


@pytest.fixture
def ledger_transactions(settings):
    counter = itertools.count(1)
    id_factory = lambda: f"id-{next(counter):04d}"
    entries = [
        ("2024-01-01", "Aporte de capital", "1101", "3101", "1000", False),
        ("2024-01-05", "Venta", "1101", "4001", "100", True),
        ("2024-01-10", "Alquiler", "5101", "1101", "200", True),
        ("2024-01-15", "Compra a credito", "1201", "2101", "300", False),
    ]

    transactions = []
    for date, description, debit, credit, amount, tax in entries:
        entry = build_journal_entry(
            CATALOG, debit, credit, Decimal(amount), tax,
            date=date, description=description,
            id_factory=id_factory, settings=settings
        )
        transactions = append_entry(transactions, entry)
    return transactions


def scenario_a_transactions():
    cash = Account("1101", "Cash")
    sales = Account("4001", "Sales")
    return [
        Transaction(id="t1", journal_entry_id="je1", date="2024-01-01", account=cash,
                    description="Sale", type=TransactionType.DEBIT, amount=Decimal('100')),
        Transaction(id="t2", journal_entry_id="je1", date="2024-01-01", account=sales,
                    description="Sale", type=TransactionType.CREDIT, amount=Decimal('100')),
    ]


class TestScenarioA:
    """Sale of 100 without tax"""

    def setup_method(self):
        self.accounts = [Account("1101", "Cash"), Account("4001", "Sales")]
        self.statements = build_financial_statements(self.accounts, scenario_a_transactions())

    def test_totals(self):
        assert self.statements.total_assets == Decimal('100')
        assert self.statements.total_revenues == Decimal('100')
        assert self.statements.net_income == Decimal('100')
        assert self.statements.total_equity_and_liabilities == Decimal('100')
        assert self.statements.is_balanced

    def test_trial_balance(self):
        rows = {row.code: row for row in self.statements.trial_balance.rows}
        assert rows["1101"].total_debits == Decimal('100')
        assert rows["1101"].total_credits == Decimal('0')
        assert rows["4001"].total_debits == Decimal('0')
        assert rows["4001"].total_credits == Decimal('100')


class TestRollup:
    """Test parent balances computed by prefix"""

    def test_rollup_of_class_one(self, ledger_transactions):
        balances = postable_balances(CATALOG, ledger_transactions)
        expected = sum(
            (balance for code, balance in balances.items() if code.startswith("1")),
            Decimal('0')
        )

        statements = build_financial_statements(CATALOG, ledger_transactions)
        assert statements.find_row("1").balance == expected
        assert statements.find_row("1").is_parent

    def test_rollup_values(self, ledger_transactions):
        statements = build_financial_statements(CATALOG, ledger_transactions)

        # Cash: 1000 + 113 - 226
        assert statements.find_row("1101").balance == Decimal('887.00')
        assert statements.find_row("11").balance == Decimal('913.00')
        assert statements.find_row("12").balance == Decimal('300')
        assert statements.find_row("1").balance == Decimal('1213.00')

    def test_prefix_matches_unrelated_codes(self):
        """"1" also collects "10..." codes: rollup is a string prefix match"""
        balances = {"1001": Decimal('5'), "1101": Decimal('7'), "2101": Decimal('1')}
        assert rollup_balance(balances, "1") == Decimal('12')
        assert rollup_balance(balances, "10") == Decimal('5')
        assert rollup_balance(balances, "9") == Decimal('0')

    def test_zero_parents_suppressed(self, ledger_transactions):
        statements = build_financial_statements(CATALOG, ledger_transactions)
        assert statements.find_row("6") is None

    def test_postable_rows_always_shown(self):
        statements = build_financial_statements(CATALOG, [])

        row = statements.find_row("3101")
        assert row is not None
        assert row.balance == Decimal('0')
        assert not row.is_parent
        assert statements.find_row("3") is None


class TestFinancialStatements:
    """Test statement totals over a small set of books"""

    def test_sections(self, ledger_transactions):
        statements = build_financial_statements(CATALOG, ledger_transactions)

        assert statements.assets.account_class == AccountClass.ASSET
        assert [row.code for row in statements.assets.rows] == ["1", "11", "1101", "1103", "12", "1201"]
        assert [row.code for row in statements.liabilities.rows] == ["2", "21", "2101", "2103.01"]

    def test_unclassified_accounts_excluded(self, ledger_transactions):
        statements = build_financial_statements(CATALOG, ledger_transactions)
        assert statements.find_row("6001") is None

    def test_totals(self, ledger_transactions):
        statements = build_financial_statements(CATALOG, ledger_transactions)

        assert statements.total_assets == Decimal('1213.00')
        assert statements.total_liabilities == Decimal('313.00')
        assert statements.total_equity == Decimal('1000')
        assert statements.total_revenues == Decimal('100')
        assert statements.total_expenses == Decimal('200')
        assert statements.net_income == Decimal('-100')

    def test_balance_sheet_ties_out(self, ledger_transactions):
        balance_sheet = build_financial_statements(CATALOG, ledger_transactions).balance_sheet()

        assert balance_sheet.total_equity_and_liabilities == Decimal('1213.00')
        assert balance_sheet.balance_check == Decimal('0')
        assert balance_sheet.is_balanced

    def test_income_statement(self, ledger_transactions):
        income_statement = build_financial_statements(CATALOG, ledger_transactions).income_statement()

        assert income_statement.total_revenues == Decimal('100')
        assert income_statement.total_expenses == Decimal('200')
        assert income_statement.net_income == Decimal('-100')

    def test_statement_of_capital(self, ledger_transactions):
        capital = build_financial_statements(CATALOG, ledger_transactions).statement_of_capital()

        assert capital.total_equity == Decimal('1000')
        assert capital.net_income == Decimal('-100')
        assert capital.final_capital == Decimal('900')

    def test_trial_balance_identity(self, ledger_transactions):
        trial_balance = build_financial_statements(CATALOG, ledger_transactions).trial_balance

        assert trial_balance.total_debits == trial_balance.total_credits
        assert trial_balance.is_balanced

    def test_non_zero_rows(self, ledger_transactions):
        statements = build_financial_statements(CATALOG, ledger_transactions)
        assert [row.code for row in statements.equity.non_zero_rows()] == ["3", "3101"]

        empty = build_financial_statements(CATALOG, [])
        assert empty.equity.non_zero_rows() == []

    def test_idempotent(self, ledger_transactions):
        first = build_financial_statements(CATALOG, ledger_transactions)
        second = build_financial_statements(CATALOG, ledger_transactions)
        assert first == second
        assert first.to_dict() == second.to_dict()

    def test_to_dict(self, ledger_transactions):
        data = build_financial_statements(CATALOG, ledger_transactions).to_dict()

        assert data['balance_sheet']['is_balanced'] is True
        assert data['statement_of_capital']['final_capital'] == "900"
        assert data['balance_sheet']['assets']['rows'][0]['level'] == 0
