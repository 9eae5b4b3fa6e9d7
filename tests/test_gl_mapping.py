"""
Tests for GL mapping compatibility and uniqueness
"""

import pytest

from backoffice.gl_mapping import (
    DUPLICATE_MAPPING_MESSAGE, compatible_accounts, is_compatible,
    missing_mappings, required_mapping_types, validate_mapping, would_duplicate
)
from backoffice.config import ConsoleConfig
from backoffice.ledger import AccountType, LedgerAccount, LedgerAccountStatus
from backoffice.products import MappingType, ProductCategory, ProductGLMapping


def make_account(account_id, code, account_type, status=LedgerAccountStatus.ACTIVE):
    return LedgerAccount(
        id=account_id,
        code=code,
        name=f"Account {code}",
        chart_of_account_code="1000",
        account_type=account_type,
        currency="USD",
        status=status,
    )


def make_mapping(mapping_id, mapping_type, ledger_account_id=1):
    return ProductGLMapping(
        id=mapping_id,
        product_id=7,
        mapping_type=mapping_type,
        ledger_account_id=ledger_account_id,
    )


@pytest.fixture
def accounts():
    return {
        1: make_account(1, "1100", AccountType.ASSET),
        2: make_account(2, "2100", AccountType.LIABILITY),
        3: make_account(3, "4100", AccountType.REVENUE),
        4: make_account(4, "5100", AccountType.EXPENSE),
        5: make_account(5, "1200", AccountType.ASSET, LedgerAccountStatus.INACTIVE),
    }


class TestCompatibility:
    """Test the mapping type to account type table"""

    @pytest.mark.parametrize("mapping_type,account_type,expected", [
        (MappingType.ASSET_ACCOUNT, AccountType.ASSET, True),
        (MappingType.ASSET_ACCOUNT, AccountType.LIABILITY, False),
        (MappingType.LIABILITY_ACCOUNT, AccountType.LIABILITY, True),
        (MappingType.FEE_ACCOUNT, AccountType.REVENUE, True),
        (MappingType.FEE_ACCOUNT, AccountType.EXPENSE, True),
        (MappingType.FEE_ACCOUNT, AccountType.ASSET, False),
        (MappingType.INTEREST_ACCOUNT, AccountType.EXPENSE, True),
        (MappingType.REVENUE_ACCOUNT, AccountType.EXPENSE, False),
        (MappingType.EXPENSE_ACCOUNT, AccountType.EXPENSE, True),
    ])
    def test_type_table(self, mapping_type, account_type, expected):
        """Test each mapping type accepts only its account types"""
        assert is_compatible(mapping_type, make_account(1, "X", account_type)) is expected

    def test_inactive_account_is_never_compatible(self, accounts):
        """Test an INACTIVE account of the right type is rejected"""
        assert is_compatible(MappingType.ASSET_ACCOUNT, accounts[5]) is False

    def test_compatible_accounts_sorted_by_code(self, accounts):
        """Test the selectable list is filtered and ordered"""
        selectable = compatible_accounts(MappingType.FEE_ACCOUNT, accounts.values())
        assert [account.code for account in selectable] == ["4100", "5100"]


class TestUniqueness:
    """Test one mapping per type per product"""

    def test_duplicate_detected(self):
        """Test a second mapping of the same type is a duplicate"""
        existing = [make_mapping(10, MappingType.ASSET_ACCOUNT)]
        assert would_duplicate(existing, MappingType.ASSET_ACCOUNT) is True
        assert would_duplicate(existing, MappingType.FEE_ACCOUNT) is False

    def test_edited_row_is_excluded(self):
        """Test editing a row may keep its own type"""
        existing = [make_mapping(10, MappingType.ASSET_ACCOUNT)]
        assert would_duplicate(existing, MappingType.ASSET_ACCOUNT, excluding_id=10) is False


class TestValidateMapping:
    """Test full mapping validation"""

    def test_valid_mapping(self, accounts):
        """Test a compatible, unique mapping has no errors"""
        assert validate_mapping(MappingType.ASSET_ACCOUNT, 1, accounts, []) == {}

    def test_duplicate_type(self, accounts):
        """Test duplicate type error is keyed on mapping_type"""
        existing = [make_mapping(10, MappingType.ASSET_ACCOUNT)]
        errors = validate_mapping(MappingType.ASSET_ACCOUNT, 1, accounts, existing)
        assert errors == {"mapping_type": DUPLICATE_MAPPING_MESSAGE}

    def test_incompatible_account_names_required_types(self, accounts):
        """Test the error names the allowed account types"""
        errors = validate_mapping(MappingType.FEE_ACCOUNT, 1, accounts, [])
        assert "EXPENSE or REVENUE" in errors["ledger_account_id"]

    def test_missing_account(self, accounts):
        """Test unknown and unset ledger accounts"""
        assert "ledger_account_id" in validate_mapping(MappingType.ASSET_ACCOUNT, 99, accounts, [])
        assert "ledger_account_id" in validate_mapping(MappingType.ASSET_ACCOUNT, None, accounts, [])

    def test_inactive_account(self, accounts):
        """Test an inactive account is rejected at submit time"""
        errors = validate_mapping(MappingType.ASSET_ACCOUNT, 5, accounts, [])
        assert "not active" in errors["ledger_account_id"]


class TestRequiredMappings:
    """Test per-category required mappings"""

    def test_loan_requirements(self):
        """Test the default LOAN requirements"""
        required = ConsoleConfig().required_gl_mappings
        assert required_mapping_types(ProductCategory.LOAN, required) == [
            MappingType.ASSET_ACCOUNT, MappingType.INTEREST_ACCOUNT, MappingType.FEE_ACCOUNT
        ]

    def test_missing_mappings(self):
        """Test mappings already held are not reported"""
        required = {"CARD": ["ASSET_ACCOUNT", "FEE_ACCOUNT"]}
        existing = [make_mapping(1, MappingType.ASSET_ACCOUNT)]
        assert missing_mappings(ProductCategory.CARD, existing, required) == [MappingType.FEE_ACCOUNT]

    def test_unconfigured_category(self):
        """Test a category without requirements reports nothing"""
        assert missing_mappings(ProductCategory.CARD, [], {}) == []
