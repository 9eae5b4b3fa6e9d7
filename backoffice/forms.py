"""
Form Projection

Drafts are the raw field values of an open add/edit form, keyed by the
request's snake_case field names. The functions here are pure: they turn a
draft into an immutable create or update request, applying every local rule
(calculation-base gate, effective window order, range order, eligibility
syntax, GL compatibility and uniqueness) or raise a ValidationError carrying
all field errors at once.
"""

from dataclasses import asdict, dataclass, field
from datetime import date
from typing import Any, Dict, Mapping, Optional, Sequence, Type

import pydantic
from pydantic.alias_generators import to_snake

from .effective_dates import window_errors
from .eligibility import operator_errors, rule_value_error
from .errors import ValidationError, raise_if_errors
from .fee_policy import (
    FEE_FIELDS, PENALTY_FIELDS, apply_fee_field_policy, apply_field_policy,
    gate_errors, normalize_fee_draft, normalize_penalty_draft
)
from .gl_mapping import validate_mapping
from .ledger import LedgerAccount
from .products import (
    ConfigKind, Product, RateType, CalculationMethod, FeeType, FeeCalculationBase,
    LimitType, PenaltyType, PenaltyCalculationBase, EligibilityRuleType,
    EligibilityOperator, EligibilityDataType, MappingType
)
from .records import ApiRecord
from .schemas import RequestModel, create_model_for, update_model_for


Draft = Dict[str, Any]

# Kinds whose rows carry a currency defaulting to the product's
_CURRENCY_KINDS = frozenset({ConfigKind.FEES, ConfigKind.LIMITS, ConfigKind.PENALTIES})

# (low, high) pairs that must be ordered when both are given
_RANGES = {
    ConfigKind.INTEREST_RATES: [("min_amount", "max_amount"), ("min_period_days", "max_period_days")],
    ConfigKind.FEES: [("min_fee", "max_fee")],
    ConfigKind.PERIODS: [("min_amount", "max_amount")],
    ConfigKind.PENALTIES: [("min_penalty", "max_penalty")],
}


@dataclass(frozen=True)
class ValidationContext:
    """What a projection needs to know beyond the draft itself"""
    product: Optional[Product] = None
    existing_rows: Sequence[ApiRecord] = ()
    ledger_accounts: Mapping[int, LedgerAccount] = field(default_factory=dict)
    editing_id: Optional[int] = None


def default_draft(kind: ConfigKind, today: date) -> Draft:
    """Blank form values for an Add form"""
    window = {"effective_from": today, "effective_to": None, "is_active": True}

    if kind == ConfigKind.INTEREST_RATES:
        return {"rate_type": RateType.DEPOSIT, "rate_value": None,
                "calculation_method": CalculationMethod.SIMPLE, **window}
    if kind == ConfigKind.FEES:
        return normalize_fee_draft({"fee_type": FeeType.MONTHLY, "fee_name": "",
                                    "fee_calculation_base": FeeCalculationBase.FIXED,
                                    "is_waivable": False, **window})
    if kind == ConfigKind.LIMITS:
        return {"limit_type": LimitType.MIN_BALANCE, "limit_value": None, **window}
    if kind == ConfigKind.PERIODS:
        return {"period_name": "", "period_days": None, "display_order": 0, **window}
    if kind == ConfigKind.PENALTIES:
        return {"penalty_type": PenaltyType.LATE_PAYMENT, "penalty_name": "",
                "calculation_base": PenaltyCalculationBase.FIXED, **window}
    if kind == ConfigKind.ELIGIBILITY_RULES:
        return {"rule_type": EligibilityRuleType.MIN_AGE, "rule_name": "",
                "operator": EligibilityOperator.GREATER_THAN_OR_EQUAL, "rule_value": "",
                "data_type": EligibilityDataType.NUMBER, "is_mandatory": True, **window}
    return {"mapping_type": MappingType.ASSET_ACCOUNT, "ledger_account_id": None,
            "description": None}


def draft_from_row(kind: ConfigKind, row: ApiRecord) -> Draft:
    """Edit form values pre-filled from a stored row"""
    accepted = create_model_for(kind).model_fields
    return {name: value for name, value in asdict(row).items() if name in accepted}


def _blank_to_none(value: Any) -> Any:
    if isinstance(value, str) and not value.strip():
        return None
    return value


def _prepare(kind: ConfigKind, draft: Draft, model_cls: Type[RequestModel],
             context: ValidationContext) -> Dict[str, Any]:
    values = {name: _blank_to_none(draft.get(name)) for name in model_cls.model_fields}

    if kind == ConfigKind.FEES:
        values = apply_fee_field_policy(normalize_fee_draft(values))
    elif kind == ConfigKind.PENALTIES:
        values = apply_field_policy(normalize_penalty_draft(values), PENALTY_FIELDS)
    elif kind == ConfigKind.ELIGIBILITY_RULES and isinstance(values.get("rule_value"), str):
        values["rule_value"] = values["rule_value"].strip()

    if kind in _CURRENCY_KINDS and values.get("currency") is None and context.product:
        values["currency"] = context.product.currency

    return values


def _friendly(error: Dict[str, Any]) -> str:
    if error.get("type") == "missing":
        return "this field is required"
    return str(error.get("msg", "invalid value"))


def _schema_errors(exc: pydantic.ValidationError) -> Dict[str, str]:
    errors: Dict[str, str] = {}
    for error in exc.errors():
        loc = error.get("loc") or ("__root__",)
        errors.setdefault(to_snake(str(loc[0])), _friendly(error))
    return errors


def _range_errors(kind: ConfigKind, request: RequestModel) -> Dict[str, str]:
    errors = {}
    for low_name, high_name in _RANGES.get(kind, []):
        low = getattr(request, low_name)
        high = getattr(request, high_name)
        if low is not None and high is not None and low > high:
            errors[high_name] = f"{high_name} must not be lower than {low_name}"
    return errors


def _domain_errors(kind: ConfigKind, request: Any, context: ValidationContext) -> Dict[str, str]:
    errors: Dict[str, str] = {}

    if kind.is_windowed:
        errors.update(window_errors(request.effective_from, request.effective_to))
    errors.update(_range_errors(kind, request))

    if kind == ConfigKind.FEES:
        errors.update(gate_errors(request.model_dump(), FEE_FIELDS))
        if request.fee_type == FeeType.TRANSACTION and request.transaction_type is None:
            errors.setdefault("transaction_type", "transaction type is required for TRANSACTION fees")
    elif kind == ConfigKind.PENALTIES:
        errors.update(gate_errors(request.model_dump(), PENALTY_FIELDS))
    elif kind == ConfigKind.ELIGIBILITY_RULES:
        message = rule_value_error(request.operator, request.data_type, request.rule_value)
        if message:
            errors["rule_value"] = message
        errors.update(operator_errors(request.operator, request.data_type))
    elif kind == ConfigKind.GL_MAPPINGS:
        errors.update(validate_mapping(
            request.mapping_type,
            request.ledger_account_id,
            context.ledger_accounts,
            list(context.existing_rows),
            context.editing_id,
        ))

    return errors


def _build(kind: ConfigKind, draft: Draft, context: ValidationContext,
           model_cls: Type[RequestModel]) -> RequestModel:
    values = _prepare(kind, draft, model_cls, context)
    try:
        # Empty fields fall back to the model default or report as missing
        request = model_cls(**{name: value for name, value in values.items() if value is not None})
    except pydantic.ValidationError as exc:
        raise ValidationError(_schema_errors(exc))

    raise_if_errors(_domain_errors(kind, request, context))
    return request


def build_create_request(kind: ConfigKind, draft: Draft,
                         context: Optional[ValidationContext] = None) -> RequestModel:
    """
    Project an Add form into its create request

    Raises:
        ValidationError: with every field error found
    """
    return _build(kind, draft, context or ValidationContext(), create_model_for(kind))


def build_update_request(kind: ConfigKind, draft: Draft,
                         context: Optional[ValidationContext] = None) -> RequestModel:
    """
    Project an Edit form into its full-replacement update request

    The context's editing_id excludes the edited row from uniqueness checks.

    Raises:
        ValidationError: with every field error found
    """
    return _build(kind, draft, context or ValidationContext(), update_model_for(kind))
