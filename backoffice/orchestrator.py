"""
Product Configuration Orchestrator

Drives the configuration tabs of one product page: rates, fees, limits,
periods, penalties, eligibility rules and GL mappings. Each tab holds a
single form state (viewing, adding, or editing one row), so two forms of
the same kind can never be open together.

Submissions run the local rules first and only then call the service. A
successful write closes the form and refetches every configuration list
rather than merging locally, so server-computed fields never drift. A failed
write keeps the form open with the draft intact.
"""

import asyncio
import inspect
import logging
from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from typing import Any, Awaitable, Callable, Dict, Iterable, List, Optional, Tuple, Union

from .client import BackOfficeClient
from .config import ConsoleConfig, get_config
from .effective_dates import (
    OverlapWarning, currently_effective, open_configuration_count, overlap_warnings
)
from .eligibility import rule_value_error
from .errors import ApiError, MalformedResponseError, ValidationError
from .fee_policy import (
    FEE_FIELDS, PENALTY_FIELDS, FieldPolicy, coerce_enum, field_policy, legal_bases,
    normalize_fee_draft, normalize_penalty_draft
)
from .forms import (
    Draft, ValidationContext, build_create_request, build_update_request,
    default_draft, draft_from_row
)
from .gl_mapping import missing_mappings
from .ledger import LedgerAccount
from .logging_config import log_action
from .products import (
    ConfigKind, ConfigurationSet, EligibilityDataType, EligibilityOperator,
    FeeCalculationBase, FeeType, MappingType, Product, TransactionType, deletion_blockers
)
from .records import ApiRecord
from .reference_data import ReferenceDataProvider
from .references import Failed, Loaded, Reference, UNLOADED, LOADING, value_or_none

logger = logging.getLogger("backoffice.orchestrator")

Confirm = Callable[[str], Union[bool, Awaitable[bool]]]


class FormMode(Enum):
    VIEWING = "viewing"
    ADDING = "adding"
    EDITING = "editing"


@dataclass(frozen=True)
class FormState:
    """Form state of one configuration tab"""
    mode: FormMode
    row_id: Optional[int] = None

    @classmethod
    def editing(cls, row_id: int) -> "FormState":
        return cls(FormMode.EDITING, row_id)

    @property
    def is_open(self) -> bool:
        return self.mode != FormMode.VIEWING


VIEWING = FormState(FormMode.VIEWING)
ADDING = FormState(FormMode.ADDING)


@dataclass
class TabState:
    rows: List[ApiRecord] = field(default_factory=list)
    form: FormState = VIEWING
    draft: Draft = field(default_factory=dict)
    field_errors: Dict[str, str] = field(default_factory=dict)
    form_error: Optional[str] = None
    loading: bool = False
    submitting: bool = False

    @property
    def controls_enabled(self) -> bool:
        return not self.loading and not self.submitting


_DRAFT_NORMALIZERS = {
    ConfigKind.FEES: normalize_fee_draft,
    ConfigKind.PENALTIES: normalize_penalty_draft,
}

_RULE_FIELDS = ("operator", "data_type", "rule_value")


async def _confirmed(confirm: Confirm, message: str) -> bool:
    answer = confirm(message)
    if inspect.isawaitable(answer):
        answer = await answer
    return bool(answer)


class ProductConfigurationOrchestrator:
    """Form state and submission flow for one product's configuration"""

    def __init__(self,
                 client: BackOfficeClient,
                 product_id: int,
                 reference_data: Optional[ReferenceDataProvider] = None,
                 settings: Optional[ConsoleConfig] = None,
                 today: Callable[[], date] = date.today):
        self.client = client
        self.product_id = product_id
        self.reference_data = reference_data
        self.settings = settings or get_config()
        self.today = today

        self.product: Reference[Product] = UNLOADED
        self.tabs: Dict[ConfigKind, TabState] = {kind: TabState() for kind in ConfigKind}
        self.alerts: List[str] = []
        self._load_locks = {kind: asyncio.Lock() for kind in ConfigKind}
        self._disposed = False

    # Loading

    async def load(self) -> None:
        """Load the product, reference data and every configuration list"""
        self.product = LOADING
        try:
            product = await self.client.get_product(self.product_id)
        except ApiError as e:
            logger.warning(f"Product {self.product_id} could not be loaded: {e.message}")
            if not self._disposed:
                self.product = Failed(e.message)
            return
        if self._disposed:
            return
        self.product = Loaded(product)

        tasks = [self.load_configurations()]
        if self.reference_data is not None:
            tasks.append(self.reference_data.ensure_loaded())
        await asyncio.gather(*tasks)

    async def load_configurations(self, kinds: Optional[Iterable[ConfigKind]] = None) -> None:
        await asyncio.gather(*(self._load_kind(kind) for kind in (kinds or ConfigKind)))

    async def _load_kind(self, kind: ConfigKind) -> None:
        tab = self.tabs[kind]
        async with self._load_locks[kind]:
            tab.loading = True
            try:
                rows = await self.client.list_configurations(self.product_id, kind)
            except ApiError as e:
                # Read failures degrade to an empty table
                logger.warning(f"Loading {kind.label} for product {self.product_id} failed: {e.message}")
                rows = []
            finally:
                tab.loading = False
            if not self._disposed:
                tab.rows = rows

    def dispose(self) -> None:
        """Stop applying responses, e.g. after navigating away from the page"""
        self._disposed = True

    # Forms

    def open_add(self, kind: ConfigKind) -> bool:
        """Open a blank form; an open edit form of the same kind is closed"""
        tab = self.tabs[kind]
        if not tab.controls_enabled:
            return False
        self._set_form(tab, ADDING, default_draft(kind, self.today()))
        return True

    def open_edit(self, kind: ConfigKind, row_id: int) -> bool:
        """Open a form pre-filled from a row; an open add form is closed"""
        tab = self.tabs[kind]
        if not tab.controls_enabled:
            return False
        row = self._find_row(kind, row_id)
        if row is None:
            return False
        draft = draft_from_row(kind, row)
        normalize = _DRAFT_NORMALIZERS.get(kind)
        if normalize is not None:
            draft = normalize(draft)
        self._set_form(tab, FormState.editing(row_id), draft)
        return True

    def close_form(self, kind: ConfigKind) -> None:
        self._set_form(self.tabs[kind], VIEWING, {})

    @staticmethod
    def _set_form(tab: TabState, form: FormState, draft: Draft) -> None:
        tab.form = form
        tab.draft = draft
        tab.field_errors = {}
        tab.form_error = None

    def set_field(self, kind: ConfigKind, name: str, value: Any) -> Draft:
        """
        Change one draft field

        Fee and penalty drafts are renormalized on every change, so changing
        the calculation base, the fee type or the transaction type all go
        through the same rule. Eligibility rule values are rechecked live.

        Raises:
            ValueError: If no form is open for this kind
        """
        tab = self.tabs[kind]
        if not tab.form.is_open:
            raise ValueError(f"No {kind.label} form is open")

        draft = dict(tab.draft)
        draft[name] = value
        normalize = _DRAFT_NORMALIZERS.get(kind)
        if normalize is not None:
            draft = normalize(draft)
        tab.draft = draft
        tab.field_errors.pop(name, None)

        if kind == ConfigKind.ELIGIBILITY_RULES and name in _RULE_FIELDS:
            self._check_rule_value(tab)
        return draft

    @staticmethod
    def _check_rule_value(tab: TabState) -> None:
        operator = coerce_enum(EligibilityOperator, tab.draft.get("operator"))
        data_type = coerce_enum(EligibilityDataType, tab.draft.get("data_type"))
        rule_value = tab.draft.get("rule_value")
        if operator is None or data_type is None or not rule_value:
            tab.field_errors.pop("rule_value", None)
            return
        message = rule_value_error(operator, data_type, rule_value)
        if message:
            tab.field_errors["rule_value"] = message
        else:
            tab.field_errors.pop("rule_value", None)

    def field_policy(self, kind: ConfigKind) -> FieldPolicy:
        """Which numeric inputs the open fee or penalty form enables"""
        gated = {ConfigKind.FEES: FEE_FIELDS, ConfigKind.PENALTIES: PENALTY_FIELDS}.get(kind)
        if gated is None:
            raise ValueError(f"{kind.label} have no calculation base")
        return field_policy(self.tabs[kind].draft.get(gated.base) or "FIXED")

    def legal_fee_bases(self) -> Tuple[FeeCalculationBase, ...]:
        """Calculation bases the open fee form may offer"""
        draft = self.tabs[ConfigKind.FEES].draft
        return legal_bases(coerce_enum(FeeType, draft.get("fee_type")),
                           coerce_enum(TransactionType, draft.get("transaction_type")))

    def selectable_ledger_accounts(self, mapping_type: Optional[MappingType] = None) -> List[LedgerAccount]:
        """Active ledger accounts compatible with the GL mapping being edited"""
        if self.reference_data is None:
            return []
        if mapping_type is None:
            mapping_type = coerce_enum(MappingType, self.tabs[ConfigKind.GL_MAPPINGS].draft.get("mapping_type"))
        if mapping_type is None:
            return []
        return self.reference_data.selectable_accounts(mapping_type)

    def validation_context(self, kind: ConfigKind) -> ValidationContext:
        tab = self.tabs[kind]
        ledger_accounts = self.reference_data.ledger_accounts if self.reference_data else {}
        return ValidationContext(
            product=value_or_none(self.product),
            existing_rows=tuple(tab.rows),
            ledger_accounts=ledger_accounts,
            editing_id=tab.form.row_id,
        )

    # Writes

    async def submit(self, kind: ConfigKind) -> bool:
        """
        Validate the open form and send it

        Returns:
            True when the row was stored and the lists refetched
        """
        tab = self.tabs[kind]
        if not tab.form.is_open or tab.submitting:
            return False

        form = tab.form
        context = self.validation_context(kind)
        try:
            if form.mode == FormMode.ADDING:
                request = build_create_request(kind, tab.draft, context)
            else:
                request = build_update_request(kind, tab.draft, context)
        except ValidationError as e:
            tab.field_errors = e.field_errors
            tab.form_error = None
            return False

        tab.field_errors = {}
        tab.form_error = None
        tab.submitting = True
        action = "create" if form.mode == FormMode.ADDING else "update"
        try:
            if form.mode == FormMode.ADDING:
                await self.client.create_configuration(self.product_id, kind, request)
            else:
                await self.client.update_configuration(self.product_id, kind, form.row_id, request)
        except MalformedResponseError as e:
            # Accepted by the service; only the echoed row could not be read
            logger.warning(f"{action} of {kind.label} returned an unreadable row: {e.detail}")
        except ApiError as e:
            log_action(logger, "warning", f"{action} of {kind.label} rejected: {e.message}",
                       action=action, resource=kind.path, product_id=self.product_id)
            if not self._disposed:
                tab.form_error = e.message
            return False
        finally:
            tab.submitting = False

        log_action(logger, "info", f"{kind.label} {action}d",
                   action=action, resource=kind.path, product_id=self.product_id)
        if self._disposed:
            return True
        self.close_form(kind)
        await self.load_configurations()
        return True

    async def delete(self, kind: ConfigKind, row_id: int, confirm: Confirm) -> bool:
        """
        Delete a row after explicit confirmation

        A failure is reported as an alert and leaves the state unchanged.
        """
        tab = self.tabs[kind]
        if tab.submitting:
            return False
        if not await _confirmed(confirm, f"Are you sure you want to delete this entry from {kind.label}?"):
            return False

        tab.submitting = True
        try:
            await self.client.delete_configuration(self.product_id, kind, row_id)
        except ApiError as e:
            log_action(logger, "warning", f"delete of {kind.label} #{row_id} rejected: {e.message}",
                       action="delete", resource=kind.path, product_id=self.product_id)
            if not self._disposed:
                self.alerts.append(e.message)
            return False
        finally:
            tab.submitting = False

        if tab.form.row_id == row_id:
            self.close_form(kind)
        if not self._disposed:
            await self.load_configurations()
        return True

    # Product lifecycle

    async def activate_product(self) -> bool:
        return await self._product_action("activate", self.client.activate_product)

    async def deactivate_product(self) -> bool:
        return await self._product_action("deactivate", self.client.deactivate_product)

    async def _product_action(self, action: str,
                              call: Callable[[int], Awaitable[Optional[Product]]]) -> bool:
        try:
            product = await call(self.product_id)
            if product is None:
                product = await self.client.get_product(self.product_id)
        except ApiError as e:
            if not self._disposed:
                self.alerts.append(e.message)
            return False
        if not self._disposed:
            self.product = Loaded(product)
        log_action(logger, "info", f"Product {self.product_id} {action}d",
                   action=action, resource="products", product_id=self.product_id)
        return True

    async def delete_product(self, confirm: Confirm) -> bool:
        """
        Delete the product once it holds no configuration rows

        Remaining rows are listed in an alert instead of calling the service.
        """
        blockers = deletion_blockers(self.configuration_set)
        if blockers:
            self.alerts.append(
                "The product still holds configuration rows: " + ", ".join(blockers)
                + ". Delete them before deleting the product."
            )
            return False

        product = value_or_none(self.product)
        name = product.name if product else f"#{self.product_id}"
        if not await _confirmed(confirm, f"Are you sure you want to delete the product \"{name}\"?"):
            return False

        try:
            await self.client.delete_product(self.product_id)
        except ApiError as e:
            self.alerts.append(e.message)
            return False
        log_action(logger, "info", f"Product {self.product_id} deleted",
                   action="delete", resource="products", product_id=self.product_id)
        return True

    # Overview

    @property
    def configuration_set(self) -> ConfigurationSet:
        return {kind: list(tab.rows) for kind, tab in self.tabs.items()}

    def effective_rows(self, kind: ConfigKind, as_of: Optional[date] = None) -> List[ApiRecord]:
        """Rows applicable on as_of (default today)"""
        return currently_effective(self.tabs[kind].rows, as_of or self.today())

    def open_configuration_count(self, as_of: Optional[date] = None) -> int:
        return open_configuration_count(self.configuration_set, as_of or self.today())

    def overlap_warnings(self) -> List[OverlapWarning]:
        return overlap_warnings(self.configuration_set)

    def missing_gl_mappings(self) -> List[MappingType]:
        """Mapping types the product's category requires but does not hold"""
        product = value_or_none(self.product)
        if product is None:
            return []
        return missing_mappings(product.category, self.tabs[ConfigKind.GL_MAPPINGS].rows,
                                self.settings.required_gl_mappings)

    def _find_row(self, kind: ConfigKind, row_id: int) -> Optional[ApiRecord]:
        for row in self.tabs[kind].rows:
            if row.id == row_id:
                return row
        return None
