"""
Reference Data Provider

Read-through cache of the active Chart-of-Accounts entries and active
ledger accounts that configuration forms offer for selection. The cache is
refreshed on demand; a failed refresh keeps the previous snapshot.
"""

import logging
from typing import Dict, List, Optional

from .client import BackOfficeClient
from .errors import ApiError
from .gl_mapping import compatible_accounts
from .ledger import ChartOfAccount, LedgerAccount, LedgerAccountStatus
from .products import MappingType

logger = logging.getLogger("backoffice.reference_data")


class ReferenceDataProvider:
    """Catalog of active accounting references"""

    def __init__(self, client: BackOfficeClient):
        self.client = client
        self._chart_of_accounts: Dict[str, ChartOfAccount] = {}
        self._ledger_accounts: Dict[int, LedgerAccount] = {}
        self.loaded = False

    async def refresh(self) -> None:
        """
        Reload both catalogs from the service

        Raises:
            ApiError: If either list cannot be fetched; cached data is kept
        """
        chart = await self.client.list_chart_of_accounts(is_active=True)
        ledger = await self.client.list_ledger_accounts(status=LedgerAccountStatus.ACTIVE)

        self._chart_of_accounts = {entry.code: entry for entry in chart if entry.is_active}
        self._ledger_accounts = {account.id: account for account in ledger if account.is_active}
        self.loaded = True
        logger.info(
            f"Reference data refreshed: {len(self._chart_of_accounts)} chart entries, "
            f"{len(self._ledger_accounts)} ledger accounts"
        )

    async def ensure_loaded(self) -> bool:
        """Load once; a failure degrades to an empty catalog"""
        if self.loaded:
            return True
        try:
            await self.refresh()
        except ApiError as e:
            logger.warning(f"Reference data unavailable: {e.message}")
            return False
        return True

    @property
    def chart_of_accounts(self) -> List[ChartOfAccount]:
        return sorted(self._chart_of_accounts.values(), key=lambda entry: entry.code)

    @property
    def ledger_accounts(self) -> Dict[int, LedgerAccount]:
        return dict(self._ledger_accounts)

    def find_chart_of_account(self, code: str) -> Optional[ChartOfAccount]:
        return self._chart_of_accounts.get(code)

    def find_ledger_account(self, account_id: int) -> Optional[LedgerAccount]:
        return self._ledger_accounts.get(account_id)

    def selectable_accounts(self, mapping_type: MappingType) -> List[LedgerAccount]:
        """Ledger accounts a GL mapping of this type may point to"""
        return compatible_accounts(mapping_type, self._ledger_accounts.values())
