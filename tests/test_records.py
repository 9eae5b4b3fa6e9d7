"""
Tests for wire records and cross-entity references
"""

import pytest
from datetime import date
from decimal import Decimal

from backoffice.ledger import AccountType, ChartOfAccount, LedgerAccount, LedgerAccountStatus
from backoffice.products import (
    ConfigKind, FeeCalculationBase, FeeType, Product, ProductCategory, ProductFee,
    ProductStatus, deletion_blockers, empty_configuration_set
)
from backoffice.records import parse_bool, parse_date, parse_decimal
from backoffice.references import LOADING, UNLOADED, Failed, Loaded, display, value_or_none


class TestParsing:
    """Test wire value parsing"""

    def test_parse_decimal(self):
        """Test numbers and strings become exact decimals"""
        assert parse_decimal("12.50") == Decimal("12.50")
        assert parse_decimal(0.1) == Decimal("0.1")
        assert parse_decimal(3) == Decimal("3")

    @pytest.mark.parametrize("value", ["", "abc", "NaN", "Infinity", True])
    def test_parse_decimal_rejects(self, value):
        """Test non-numeric and non-finite values are rejected"""
        with pytest.raises(ValueError):
            parse_decimal(value)

    def test_parse_date_accepts_timestamps(self):
        """Test a full timestamp is cut to its date"""
        assert parse_date("2024-03-01T10:15:00Z") == date(2024, 3, 1)


class TestWireRecords:
    """Test camelCase decoding and encoding"""

    def test_ledger_account_from_wire(self):
        """Test decoding with unknown keys and numeric balances"""
        account = LedgerAccount.from_wire({
            "id": 7,
            "code": "1100",
            "name": "Cash",
            "chartOfAccountCode": "1000",
            "accountType": "ASSET",
            "currency": "USD",
            "status": "ACTIVE",
            "balance": 1250.75,
            "availableBalance": "1000.00",
            "createdAt": "2024-01-01T00:00:00Z",
        })

        assert account.account_type == AccountType.ASSET
        assert account.status == LedgerAccountStatus.ACTIVE
        assert account.balance == Decimal("1250.75")
        assert account.available_balance == Decimal("1000.00")
        assert account.display_name == "1100 - Cash"

    def test_defaults_for_missing_optional_keys(self):
        """Test missing optional keys fall back to defaults"""
        entry = ChartOfAccount.from_wire({"id": 1, "code": "1000", "name": "Assets", "accountType": "ASSET"})

        assert entry.level == 1
        assert entry.parent_code is None
        assert entry.is_active is True
        assert entry.is_root

    def test_missing_required_key(self):
        """Test a missing required key is an error"""
        with pytest.raises(ValueError):
            Product.from_wire({"id": 1, "code": "X"})

    def test_fee_from_wire_decimal_strings(self):
        """Test decimal strings and ISO dates decode exactly"""
        fee = ProductFee.from_wire({
            "id": 2, "productId": 1, "feeType": "MONTHLY", "feeName": "Maintenance",
            "feeCalculationBase": "FIXED", "currency": "USD", "effectiveFrom": "2024-01-01",
            "feeAmount": "5.00", "effectiveTo": None,
        })

        assert fee.fee_type == FeeType.MONTHLY
        assert fee.fee_calculation_base == FeeCalculationBase.FIXED
        assert fee.fee_amount == Decimal("5.00")
        assert fee.effective_from == date(2024, 1, 1)
        assert fee.effective_to is None

    @pytest.mark.parametrize("wire,expected", [(True, True), (False, False), ("true", True), ("false", False)])
    def test_boolean_literals(self, wire, expected):
        """Test booleans sent as JSON or as string literals"""
        entry = ChartOfAccount.from_wire({"id": 1, "code": "1000", "name": "Assets",
                                          "accountType": "ASSET", "isActive": wire})
        assert entry.is_active is expected

    def test_unknown_boolean_literal(self):
        """Test other strings are not read as booleans"""
        with pytest.raises(ValueError):
            parse_bool("no")

    def test_payload_must_be_object(self):
        """Test non-object payloads are rejected"""
        with pytest.raises(ValueError):
            Product.from_wire(["not", "an", "object"])
        with pytest.raises(ValueError):
            Product.from_wire_list({"items": []})

    def test_kind_record_classes(self):
        """Test each configuration kind decodes into its own record class"""
        assert ConfigKind.FEES.record_class is ProductFee
        assert ConfigKind("interest-rates") == ConfigKind.INTEREST_RATES
        assert not ConfigKind.GL_MAPPINGS.is_windowed


class TestDeletionBlockers:
    """Test product deletion dependencies"""

    def test_blockers_listed_per_kind(self):
        """Test every non-empty kind is named with its count"""
        config_set = empty_configuration_set()
        config_set[ConfigKind.FEES] = [object(), object()]
        config_set[ConfigKind.LIMITS] = [object()]

        assert deletion_blockers(config_set) == ["2 fees", "1 limits"]

    def test_empty_product_is_deletable(self):
        """Test no blockers for a product without rows"""
        assert deletion_blockers(empty_configuration_set()) == []


class TestReferences:
    """Test reference display states"""

    def test_display_states(self):
        """Test every reference state renders distinctly"""
        product = Product(id=1, code="P1", name="Gold Card", category=ProductCategory.CARD,
                          status=ProductStatus.DRAFT, currency="USD")

        assert display(Loaded(product), lambda p: p.name) == "Gold Card"
        assert display(LOADING, lambda p: p.name) == "…"
        assert display(UNLOADED, lambda p: p.name) == "-"
        assert display(Failed("boom"), lambda p: p.name, placeholder="n/a") == "n/a"

    def test_value_or_none(self):
        """Test only loaded references yield a value"""
        assert value_or_none(Loaded(5)) == 5
        assert value_or_none(Failed("x")) is None
        assert value_or_none(LOADING) is None
