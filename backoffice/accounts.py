"""
Chart of Accounts and Ledger Account Management

Local consistency rules for the accounting catalog: a child chart entry
shares its parent's account type and sits one level below it, and a ledger
account must hang off an active chart entry of the same type. Requests that
break these rules are refused before they reach the service.
"""

import logging
import re
from typing import Dict, List, Mapping, Optional

from .client import BackOfficeClient
from .config import get_config
from .errors import raise_if_errors
from .ledger import ChartOfAccount, LedgerAccount
from .schemas import (
    ROOT_PARENT_CODE, CreateChartOfAccountRequest, UpdateChartOfAccountRequest,
    CreateLedgerAccountRequest, UpdateLedgerAccountRequest
)

logger = logging.getLogger("backoffice.accounts")

TYPE_MUST_MATCH_PARENT = "type must match parent"

_CURRENCY_PATTERN = re.compile(r"^[A-Z]{3}$")


def expected_level(parent: Optional[ChartOfAccount]) -> int:
    return 1 if parent is None else parent.level + 1


def validate_chart_of_account(request: CreateChartOfAccountRequest,
                              catalog: Mapping[str, ChartOfAccount],
                              max_code_length: int = 20) -> Dict[str, str]:
    """
    Validate a new Chart-of-Accounts entry against the existing catalog

    Returns:
        Field errors, empty when the entry may be created
    """
    errors: Dict[str, str] = {}
    code = request.code.strip()

    if not code:
        errors["code"] = "code is required"
    elif len(code) > max_code_length:
        errors["code"] = f"code must be at most {max_code_length} characters"
    elif code in catalog:
        errors["code"] = f"code {code} already exists"

    parent = None
    if request.parent_code:
        if request.parent_code == code:
            errors["parent_code"] = "an account cannot be its own parent"
            return errors
        parent = catalog.get(request.parent_code)
        if parent is None:
            errors["parent_code"] = f"parent account {request.parent_code} not found"
            return errors
        if request.account_type != parent.account_type:
            errors["account_type"] = TYPE_MUST_MATCH_PARENT

    if request.level is not None and request.level != expected_level(parent):
        errors["level"] = f"level must be {expected_level(parent)}"

    return errors


def validate_chart_of_account_update(current: ChartOfAccount,
                                     request: UpdateChartOfAccountRequest,
                                     catalog: Mapping[str, ChartOfAccount]) -> Dict[str, str]:
    """
    Validate a partial update, unset fields keeping their current value

    A parent_code of ROOT_PARENT_CODE makes the entry a level 1 root.
    """
    errors: Dict[str, str] = {}
    account_type = request.account_type or current.account_type
    parent_code = request.parent_code if request.parent_code is not None else current.parent_code

    parent = None
    if parent_code:
        if parent_code == current.code:
            return {"parent_code": "an account cannot be its own parent"}
        parent = catalog.get(parent_code)
        if parent is None:
            return {"parent_code": f"parent account {parent_code} not found"}
        if account_type != parent.account_type:
            errors["account_type"] = TYPE_MUST_MATCH_PARENT

    children = [entry for entry in catalog.values() if entry.parent_code == current.code]
    if any(child.account_type != account_type for child in children):
        errors.setdefault("account_type", "type must match existing child accounts")

    if request.level is not None and request.level != expected_level(parent):
        errors["level"] = f"level must be {expected_level(parent)}"

    return errors


def validate_ledger_account(request: CreateLedgerAccountRequest,
                            chart: Mapping[str, ChartOfAccount],
                            max_code_length: int = 50) -> Dict[str, str]:
    """
    Validate a new ledger account against the chart of accounts

    Returns:
        Field errors, empty when the account may be created
    """
    errors: Dict[str, str] = {}

    if not request.code.strip():
        errors["code"] = "code is required"
    elif len(request.code) > max_code_length:
        errors["code"] = f"code must be at most {max_code_length} characters"

    if not request.name.strip():
        errors["name"] = "name is required"

    entry = chart.get(request.chart_of_account_code)
    if entry is None:
        errors["chart_of_account_code"] = "chart of account not found"
    elif not entry.is_active:
        errors["chart_of_account_code"] = "chart of account is inactive"
    elif entry.account_type != request.account_type:
        errors["account_type"] = "account type must match the chart of account type"

    if not _CURRENCY_PATTERN.match(request.currency or ""):
        errors["currency"] = "currency must be a 3-letter ISO code"

    return errors


def validate_ledger_account_update(current: LedgerAccount,
                                   request: UpdateLedgerAccountRequest,
                                   chart: Mapping[str, ChartOfAccount]) -> Dict[str, str]:
    errors: Dict[str, str] = {}
    if request.name is not None and not request.name.strip():
        errors["name"] = "name is required"
    if request.account_type is not None:
        entry = chart.get(current.chart_of_account_code)
        if entry is not None and entry.account_type != request.account_type:
            errors["account_type"] = "account type must match the chart of account type"
    if request.currency is not None and not _CURRENCY_PATTERN.match(request.currency):
        errors["currency"] = "currency must be a 3-letter ISO code"
    return errors


class ChartOfAccountsManager:
    """Validates chart entries locally before sending them to the service"""

    def __init__(self, client: BackOfficeClient):
        self.client = client

    async def catalog(self) -> Dict[str, ChartOfAccount]:
        entries = await self.client.list_chart_of_accounts()
        return {entry.code: entry for entry in entries}

    async def create(self, request: CreateChartOfAccountRequest) -> Optional[ChartOfAccount]:
        """
        Create a chart entry, deriving its level from the parent

        Raises:
            ValidationError: If the entry breaks a hierarchy rule
            ApiError: If the service rejects it
        """
        catalog = await self.catalog()
        raise_if_errors(validate_chart_of_account(
            request, catalog, get_config().chart_of_account_code_max_length
        ))

        parent = catalog.get(request.parent_code) if request.parent_code else None
        if request.level is None:
            request = request.model_copy(update={"level": expected_level(parent)})

        entry = await self.client.create_chart_of_account(request)
        logger.info(f"Chart of account {request.code} created at level {request.level}")
        return entry

    async def update(self, account_id: int, request: UpdateChartOfAccountRequest) -> Optional[ChartOfAccount]:
        current = await self.client.get_chart_of_account(account_id)
        catalog = await self.catalog()
        raise_if_errors(validate_chart_of_account_update(current, request, catalog))
        return await self.client.update_chart_of_account(account_id, request)

    async def make_root(self, account_id: int) -> Optional[ChartOfAccount]:
        """Detach an entry from its parent"""
        return await self.update(account_id, UpdateChartOfAccountRequest(parent_code=ROOT_PARENT_CODE))

    async def delete(self, account_id: int) -> None:
        await self.client.delete_chart_of_account(account_id)
        logger.info(f"Chart of account {account_id} deleted")

    async def children(self, code: str) -> List[ChartOfAccount]:
        return await self.client.get_chart_of_account_children(code)


class LedgerAccountManager:
    """Validates ledger accounts locally before sending them to the service"""

    def __init__(self, client: BackOfficeClient):
        self.client = client

    async def _chart(self) -> Dict[str, ChartOfAccount]:
        entries = await self.client.list_chart_of_accounts()
        return {entry.code: entry for entry in entries}

    async def create(self, request: CreateLedgerAccountRequest) -> Optional[LedgerAccount]:
        """
        Create a ledger account

        Raises:
            ValidationError: If the chart entry is missing, inactive or of another type
            ApiError: If the service rejects it (e.g. duplicate code)
        """
        chart = await self._chart()
        raise_if_errors(validate_ledger_account(
            request, chart, get_config().ledger_account_code_max_length
        ))
        account = await self.client.create_ledger_account(request)
        logger.info(f"Ledger account {request.code} created")
        return account

    async def update(self, account_id: int, request: UpdateLedgerAccountRequest) -> Optional[LedgerAccount]:
        current = await self.client.get_ledger_account(account_id)
        raise_if_errors(validate_ledger_account_update(current, request, await self._chart()))
        return await self.client.update_ledger_account(account_id, request)

    async def delete(self, account_id: int) -> None:
        await self.client.delete_ledger_account(account_id)
        logger.info(f"Ledger account {account_id} deleted")
