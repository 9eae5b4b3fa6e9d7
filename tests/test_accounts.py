"""
Tests for Chart of Accounts and ledger account management
"""

import pytest
import pytest_asyncio
import httpx

from backoffice.accounts import (
    TYPE_MUST_MATCH_PARENT, ChartOfAccountsManager, LedgerAccountManager,
    expected_level, validate_chart_of_account, validate_chart_of_account_update, validate_ledger_account
)
from backoffice.client import BackOfficeClient
from backoffice.errors import ApiError, ValidationError
from backoffice.ledger import AccountType, ChartOfAccount, LedgerAccountStatus
from backoffice.sandbox import create_app
from backoffice.schemas import (
    ROOT_PARENT_CODE, CreateChartOfAccountRequest, CreateLedgerAccountRequest, UpdateChartOfAccountRequest
)


# Configure pytest-asyncio
pytest_plugins = ('pytest_asyncio',)


def chart_entry(code, account_type=AccountType.ASSET, level=1, parent_code=None, is_active=True):
    return ChartOfAccount(id=len(code), code=code, name=f"Entry {code}", account_type=account_type,
                          level=level, parent_code=parent_code, is_active=is_active)


class TestChartOfAccountValidation:
    """Test local hierarchy rules"""

    def setup_method(self):
        """Set up a small catalog"""
        self.catalog = {
            "1000": chart_entry("1000"),
            "1100": chart_entry("1100", level=2, parent_code="1000"),
        }

    def test_expected_level(self):
        """Test roots sit at level 1 and children one below the parent"""
        assert expected_level(None) == 1
        assert expected_level(self.catalog["1100"]) == 3

    def test_child_of_matching_type(self):
        """Test a child sharing its parent's type is accepted"""
        request = CreateChartOfAccountRequest(code="1110", name="Petty cash",
                                              account_type=AccountType.ASSET, parent_code="1100")
        assert validate_chart_of_account(request, self.catalog) == {}

    def test_child_type_must_match_parent(self):
        """Test a LIABILITY child under an ASSET parent is refused"""
        request = CreateChartOfAccountRequest(code="1200", name="Deposits",
                                              account_type=AccountType.LIABILITY, parent_code="1000")
        assert validate_chart_of_account(request, self.catalog) == {"account_type": TYPE_MUST_MATCH_PARENT}

    def test_duplicate_code(self):
        """Test codes are unique"""
        request = CreateChartOfAccountRequest(code="1000", name="Again", account_type=AccountType.ASSET)
        assert "code" in validate_chart_of_account(request, self.catalog)

    def test_code_length(self):
        """Test the code length limit"""
        request = CreateChartOfAccountRequest(code="9" * 21, name="Too long", account_type=AccountType.ASSET)
        assert "code" in validate_chart_of_account(request, self.catalog, max_code_length=20)

    def test_unknown_parent(self):
        """Test the parent must exist"""
        request = CreateChartOfAccountRequest(code="3100", name="Orphan",
                                              account_type=AccountType.ASSET, parent_code="3000")
        assert "parent_code" in validate_chart_of_account(request, self.catalog)

    def test_wrong_level(self):
        """Test an explicit level must match the parent"""
        request = CreateChartOfAccountRequest(code="1120", name="Bank", account_type=AccountType.ASSET,
                                              parent_code="1100", level=2)
        assert validate_chart_of_account(request, self.catalog) == {"level": "level must be 3"}

    def test_update_keeps_or_detaches_parent(self):
        """Test an unset parent keeps the current one and ROOT_PARENT_CODE detaches it"""
        current = self.catalog["1100"]

        assert validate_chart_of_account_update(current, UpdateChartOfAccountRequest(name="Cash"), self.catalog) == {}
        assert validate_chart_of_account_update(
            current, UpdateChartOfAccountRequest(parent_code=ROOT_PARENT_CODE), self.catalog) == {}
        assert validate_chart_of_account_update(
            current, UpdateChartOfAccountRequest(parent_code=ROOT_PARENT_CODE, level=2), self.catalog
        ) == {"level": "level must be 1"}


class TestLedgerAccountValidation:
    """Test ledger accounts against the chart"""

    def setup_method(self):
        """Set up a chart with an active and an inactive entry"""
        self.chart = {
            "1100": chart_entry("1100", level=2, parent_code="1000"),
            "1900": chart_entry("1900", is_active=False),
        }

    def make_request(self, **overrides):
        values = {"code": "1100-001", "name": "Cash USD", "chart_of_account_code": "1100",
                  "account_type": AccountType.ASSET, "currency": "USD"}
        values.update(overrides)
        return CreateLedgerAccountRequest(**values)

    def test_valid(self):
        """Test a matching, active chart entry"""
        assert validate_ledger_account(self.make_request(), self.chart) == {}

    def test_type_mismatch(self):
        """Test the type must equal the chart entry's type"""
        errors = validate_ledger_account(self.make_request(account_type=AccountType.REVENUE), self.chart)
        assert "account_type" in errors

    def test_inactive_chart_entry(self):
        """Test accounts cannot hang off an inactive entry"""
        errors = validate_ledger_account(self.make_request(chart_of_account_code="1900"), self.chart)
        assert errors["chart_of_account_code"] == "chart of account is inactive"

    def test_missing_chart_entry(self):
        """Test the chart entry must exist"""
        errors = validate_ledger_account(self.make_request(chart_of_account_code="7777"), self.chart)
        assert "chart_of_account_code" in errors

    @pytest.mark.parametrize("currency", ["usd", "US", "EURO"])
    def test_currency_code(self, currency):
        """Test currency must be a 3-letter upper-case code"""
        assert "currency" in validate_ledger_account(self.make_request(currency=currency), self.chart)


class TestAccountManagers:
    """Test managers end to end against the sandbox service"""

    @pytest_asyncio.fixture
    async def client(self):
        """Create a client wired to an in-process sandbox"""
        transport = httpx.ASGITransport(app=create_app())
        async with BackOfficeClient(base_url="http://sandbox", transport=transport) as client:
            yield client

    @pytest.mark.asyncio
    async def test_hierarchy_scenario(self, client):
        """Test root, child, refused child and ledger account creation"""
        chart = ChartOfAccountsManager(client)
        ledger = LedgerAccountManager(client)

        root = await chart.create(CreateChartOfAccountRequest(
            code="1000", name="Assets", account_type=AccountType.ASSET))
        child = await chart.create(CreateChartOfAccountRequest(
            code="1100", name="Cash", account_type=AccountType.ASSET, parent_code="1000"))

        assert root.level == 1
        assert child.level == 2
        assert child.parent_code == "1000"

        with pytest.raises(ValidationError) as exc_info:
            await chart.create(CreateChartOfAccountRequest(
                code="1200", name="Deposits", account_type=AccountType.LIABILITY, parent_code="1000"))
        assert exc_info.value.field_errors["account_type"] == TYPE_MUST_MATCH_PARENT
        assert [entry.code for entry in await client.list_chart_of_accounts()] == ["1000", "1100"]

        account = await ledger.create(CreateLedgerAccountRequest(
            code="1100-USD", name="Cash USD", chart_of_account_code="1100",
            account_type=AccountType.ASSET, currency="USD"))

        assert account.status == LedgerAccountStatus.ACTIVE
        assert account.balance == 0
        assert [entry.code for entry in await chart.children("1000")] == ["1100"]

    @pytest.mark.asyncio
    async def test_duplicate_code_rejected_by_service(self, client):
        """Test the service's duplicate message surfaces as ApiError"""
        request = CreateChartOfAccountRequest(code="2000", name="Liabilities",
                                              account_type=AccountType.LIABILITY)
        await client.create_chart_of_account(request)

        with pytest.raises(ApiError) as exc_info:
            await client.create_chart_of_account(request)

        assert exc_info.value.status_code == 409
        assert "already exists" in exc_info.value.message

    @pytest.mark.asyncio
    async def test_update_type_checked_against_children(self, client):
        """Test a parent cannot change type away from its children"""
        chart = ChartOfAccountsManager(client)
        root = await chart.create(CreateChartOfAccountRequest(
            code="4000", name="Revenue", account_type=AccountType.REVENUE))
        await chart.create(CreateChartOfAccountRequest(
            code="4100", name="Fees", account_type=AccountType.REVENUE, parent_code="4000"))

        with pytest.raises(ValidationError) as exc_info:
            await chart.update(root.id, UpdateChartOfAccountRequest(account_type=AccountType.EXPENSE))
        assert "account_type" in exc_info.value.field_errors

        renamed = await chart.update(root.id, UpdateChartOfAccountRequest(name="Operating revenue"))
        assert renamed.name == "Operating revenue"
        assert renamed.account_type == AccountType.REVENUE

    @pytest.mark.asyncio
    async def test_delete_with_children_refused(self, client):
        """Test the service refuses to delete a parent entry"""
        chart = ChartOfAccountsManager(client)
        root = await chart.create(CreateChartOfAccountRequest(
            code="5000", name="Expenses", account_type=AccountType.EXPENSE))
        child = await chart.create(CreateChartOfAccountRequest(
            code="5100", name="Salaries", account_type=AccountType.EXPENSE, parent_code="5000"))

        with pytest.raises(ApiError) as exc_info:
            await chart.delete(root.id)
        assert exc_info.value.status_code == 409

        await chart.delete(child.id)
        await chart.delete(root.id)
        assert await client.list_chart_of_accounts() == []

    @pytest.mark.asyncio
    async def test_make_root(self, client):
        """Test a child entry can be detached to the top of the hierarchy"""
        chart = ChartOfAccountsManager(client)
        await chart.create(CreateChartOfAccountRequest(
            code="6000", name="Equity", account_type=AccountType.EQUITY))
        child = await chart.create(CreateChartOfAccountRequest(
            code="6100", name="Retained earnings", account_type=AccountType.EQUITY, parent_code="6000"))

        renamed = await chart.update(child.id, UpdateChartOfAccountRequest(name="Retained profit"))
        assert renamed.parent_code == "6000"

        moved = await chart.make_root(child.id)

        assert moved.parent_code is None
        assert moved.level == 1
        assert await chart.children("6000") == []
