"""
Tests for configuration, logging and the reference data cache
"""

import json
import logging
import pytest
import pytest_asyncio
import httpx

from backoffice.client import BackOfficeClient
from backoffice.config import ConsoleConfig
from backoffice.errors import ApiError, ValidationError
from backoffice.ledger import AccountType
from backoffice.logging_config import JSONFormatter, log_action, setup_logging
from backoffice.products import MappingType
from backoffice.reference_data import ReferenceDataProvider
from backoffice.sandbox import create_app
from backoffice.schemas import CreateChartOfAccountRequest, CreateLedgerAccountRequest


# Configure pytest-asyncio
pytest_plugins = ('pytest_asyncio',)


class TestConsoleConfig:
    """Test environment-based configuration"""

    def test_defaults(self, monkeypatch):
        """Test default values"""
        monkeypatch.delenv("BACKOFFICE_API_BASE_URL", raising=False)
        settings = ConsoleConfig(_env_file=None)

        assert settings.api_base_url == "http://localhost:8080"
        assert settings.api_prefix == "/api"
        assert settings.api_timeout is None
        assert "LIABILITY_ACCOUNT" in settings.required_gl_mappings["SAVINGS_ACCOUNT"]

    def test_environment_override(self, monkeypatch):
        """Test BACKOFFICE_ variables override defaults"""
        monkeypatch.setenv("BACKOFFICE_API_BASE_URL", "backoffice.internal:9000/")
        monkeypatch.setenv("BACKOFFICE_API_TIMEOUT", "2.5")

        settings = ConsoleConfig(_env_file=None)

        assert settings.api_base_url == "http://backoffice.internal:9000"
        assert settings.api_timeout == 2.5


class TestErrors:
    """Test the validation error helpers"""

    def test_str_summarizes_fields(self):
        """Test the exception text lists every field"""
        assert "rule_value" in str(ValidationError.single("rule_value", "bad literal"))


class TestLogging:
    """Test structured logging"""

    def test_json_formatter_includes_action_fields(self):
        """Test action context is rendered as JSON keys"""
        logger = logging.getLogger("backoffice.test.formatter")
        record = logger.makeRecord(logger.name, logging.INFO, __name__, 0, "fee created", (), None)
        record.action = "create"
        record.resource = "fees"
        record.product_id = 7

        entry = json.loads(JSONFormatter().format(record))

        assert entry["message"] == "fee created"
        assert entry["action"] == "create"
        assert entry["resource"] == "fees"
        assert entry["product_id"] == 7
        assert "extra" not in entry

    def test_log_action_respects_level(self, tmp_path):
        """Test log_action writes structured records above the logger level"""
        log_file = tmp_path / "console.log"
        logger = setup_logging("WARNING", logger_name="backoffice.test.actions", log_file=str(log_file))

        log_action(logger, "info", "ignored", action="load")
        log_action(logger, "warning", "rejected", action="create", resource="gl-mappings", product_id=3)
        for handler in logger.handlers:
            handler.flush()

        lines = log_file.read_text().strip().splitlines()
        assert len(lines) == 1
        assert json.loads(lines[0])["resource"] == "gl-mappings"


class TestReferenceData:
    """Test the reference data cache"""

    @pytest_asyncio.fixture
    async def client(self):
        transport = httpx.ASGITransport(app=create_app())
        async with BackOfficeClient(base_url="http://sandbox", transport=transport) as client:
            yield client

    @pytest.mark.asyncio
    async def test_refresh_and_lookup(self, client):
        """Test active entries are cached and filtered for selection"""
        await client.create_chart_of_account(CreateChartOfAccountRequest(
            code="5000", name="Expenses", account_type=AccountType.EXPENSE))
        account = await client.create_ledger_account(CreateLedgerAccountRequest(
            code="5000-01", name="Interest expense", chart_of_account_code="5000",
            account_type=AccountType.EXPENSE, currency="USD"))

        provider = ReferenceDataProvider(client)
        assert await provider.ensure_loaded()

        assert provider.find_chart_of_account("5000").name == "Expenses"
        assert provider.find_ledger_account(account.id) == account
        assert provider.selectable_accounts(MappingType.INTEREST_ACCOUNT) == [account]
        assert provider.selectable_accounts(MappingType.ASSET_ACCOUNT) == []

    @pytest.mark.asyncio
    async def test_unreachable_service_degrades(self):
        """Test a transport failure leaves an empty catalog"""
        def handler(request):
            raise httpx.ConnectError("refused", request=request)

        client = BackOfficeClient(base_url="http://down", transport=httpx.MockTransport(handler))
        provider = ReferenceDataProvider(client)

        assert await provider.ensure_loaded() is False
        assert provider.ledger_accounts == {}
        with pytest.raises(ApiError):
            await provider.refresh()
        await client.close()
