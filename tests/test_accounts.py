"""
Test suite for the chart of accounts module

Tests code classification, postability, prefix parenthood and the
add/delete rules of the account catalog.
"""

import pytest
from decimal import Decimal

from bookkeeping.accounts import (
    Account, AccountClass, NormalBalance, add_account, delete_account,
    default_chart_of_accounts, find_account, is_debit_normal, is_parent_account,
    is_parent_of, is_postable, postable_accounts, used_account_codes
)
from bookkeeping.errors import (
    AccountHasChildrenError, AccountInUseError, AccountNotFoundError,
    DuplicateCodeError, InvalidAccountError, LedgerError
)
from bookkeeping.journal import Transaction, TransactionType


def make_transaction(account, tx_id="T1"):
    return Transaction(
        id=tx_id,
        journal_entry_id="JE1",
        date="2024-01-15",
        account=account,
        description="Test posting",
        type=TransactionType.DEBIT,
        amount=Decimal('10.00')
    )


class TestAccountCodes:
    """Test classification helpers derived from the account code"""

    def test_postable_codes(self):
        """Four digit and dotted codes are postable"""
        assert is_postable("1101")
        assert is_postable("2103.01")
        assert is_postable("11010")
        assert not is_postable("1")
        assert not is_postable("11")
        assert not is_postable("110")

    def test_is_parent_of(self):
        """Parenthood is a strict string prefix relation"""
        assert is_parent_of("1", "1101")
        assert is_parent_of("2103", "2103.01")
        assert is_parent_of("1", "10")
        assert not is_parent_of("1101", "1101")
        assert not is_parent_of("2", "1101")

    def test_debit_normal_prefixes(self):
        """Classes 1, 5 and 6 are debit normal"""
        assert is_debit_normal("1101")
        assert is_debit_normal("5101")
        assert is_debit_normal("6001")
        assert not is_debit_normal("2101")
        assert not is_debit_normal("3101")
        assert not is_debit_normal("4101")
        assert not is_debit_normal("7001")

    def test_account_class(self):
        """Leading digit maps to the statement class"""
        assert Account("1101", "Cash").account_class == AccountClass.ASSET
        assert Account("2101", "Payables").account_class == AccountClass.LIABILITY
        assert Account("3101", "Capital").account_class == AccountClass.EQUITY
        assert Account("4101", "Sales").account_class == AccountClass.REVENUE
        assert Account("5101", "Wages").account_class == AccountClass.EXPENSE
        assert Account("6001", "Other").account_class == AccountClass.OTHER

    def test_normal_balance_property(self):
        assert Account("1101", "Cash").normal_balance == NormalBalance.DEBIT
        assert Account("6001", "Other").normal_balance == NormalBalance.DEBIT
        assert Account("4101", "Sales").normal_balance == NormalBalance.CREDIT

    def test_level(self):
        """Level follows the code shape"""
        assert Account("1", "Activo").level == 0
        assert Account("11", "Corriente").level == 1
        assert Account("1101", "Caja").level == 2
        assert Account("2103.01", "IVA").level == 3

    def test_account_strips_whitespace(self):
        account = Account("  1101 ", " Caja  ")
        assert account.code == "1101"
        assert account.name == "Caja"
        assert account.label == "1101 - Caja"

    def test_blank_account_rejected(self):
        with pytest.raises(InvalidAccountError):
            Account("", "Caja")
        with pytest.raises(InvalidAccountError):
            Account("1101", "   ")


class TestAddAccount:
    """Test adding accounts to the catalog"""

    def setup_method(self):
        self.catalog = [Account("1", "Activo"), Account("1101", "Caja")]

    def test_add_account_sorted(self):
        """New catalog is sorted by code as strings"""
        result = add_account(self.catalog, Account("2", "Pasivo"))
        result = add_account(result, Account("10", "Otros Activos"))

        assert [a.code for a in result] == ["1", "10", "1101", "2"]

    def test_add_does_not_mutate_input(self):
        add_account(self.catalog, Account("2", "Pasivo"))
        assert [a.code for a in self.catalog] == ["1", "1101"]

    def test_duplicate_code_rejected(self):
        """Adding an existing code fails and leaves the catalog unchanged"""
        with pytest.raises(DuplicateCodeError) as exc_info:
            add_account(self.catalog, Account("1101", "Efectivo"))

        assert exc_info.value.code == "1101"
        assert isinstance(exc_info.value, LedgerError)
        assert isinstance(exc_info.value, ValueError)
        assert [a.name for a in self.catalog] == ["Activo", "Caja"]


class TestDeleteAccount:
    """Test removing accounts from the catalog"""

    def setup_method(self):
        self.catalog = [
            Account("1", "Activo"),
            Account("1101", "Caja"),
            Account("1102", "Bancos"),
            Account("2103", "Impuestos"),
            Account("2103.01", "IVA Debito"),
        ]

    def test_delete_unused_leaf(self):
        result = delete_account(self.catalog, "1102", [make_transaction(self.catalog[1])])
        assert find_account(result, "1102") is None
        assert len(result) == 4
        assert len(self.catalog) == 5

    def test_delete_referenced_account_fails(self):
        """Accounts with postings cannot be deleted"""
        transactions = [make_transaction(self.catalog[1], "T1"), make_transaction(self.catalog[1], "T2")]

        with pytest.raises(AccountInUseError) as exc_info:
            delete_account(self.catalog, "1101", transactions)

        assert exc_info.value.transaction_count == 2

    def test_delete_parent_fails(self):
        """Prefix parents cannot be deleted"""
        with pytest.raises(AccountHasChildrenError) as exc_info:
            delete_account(self.catalog, "1")
        assert exc_info.value.children == ["1101", "1102"]

        with pytest.raises(AccountHasChildrenError):
            delete_account(self.catalog, "2103")

    def test_delete_unknown_account_fails(self):
        with pytest.raises(AccountNotFoundError):
            delete_account(self.catalog, "9999")

    def test_delete_leaf_then_parent(self):
        """A parent becomes deletable once its children are gone"""
        result = delete_account(self.catalog, "2103.01")
        result = delete_account(result, "2103")
        assert [a.code for a in result] == ["1", "1101", "1102"]


class TestCatalogHelpers:
    """Test catalog query helpers"""

    def test_postable_accounts(self):
        chart = default_chart_of_accounts()
        codes = [a.code for a in postable_accounts(chart)]
        assert "1101" in codes
        assert "2103.01" in codes
        assert "1" not in codes
        assert "11" not in codes

    def test_default_chart_has_tax_accounts(self):
        chart = default_chart_of_accounts()
        assert find_account(chart, "1103") is not None
        assert find_account(chart, "2103.01") is not None
        assert [a.code for a in chart] == sorted(a.code for a in chart)

    def test_is_parent_account(self):
        chart = default_chart_of_accounts()
        assert is_parent_account(chart, "2103")
        assert is_parent_account(chart, "21")
        assert not is_parent_account(chart, "2103.01")

    def test_used_account_codes(self):
        cash = Account("1101", "Caja")
        usage = used_account_codes([make_transaction(cash, "T1"), make_transaction(cash, "T2")])
        assert usage == {"1101": 2}
        assert usage["1102"] == 0
        assert not used_account_codes([])
