"""
Calculation-Base Field Gate

A fee or penalty is either a fixed amount, a percentage, or both, depending on
the quantity it is computed against. This module decides which numeric fields
apply, narrows the legal bases for transfer transaction fees, and clears
disabled fields before a request is built.

Changing the calculation base, the fee type or the transaction type all run
the same normalization, so the three entry points cannot drift apart.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional, Tuple, Type, TypeVar, Union

from .products import FeeCalculationBase, FeeType, PenaltyCalculationBase, TransactionType


E = TypeVar("E", bound=Enum)

CalculationBase = Union[FeeCalculationBase, PenaltyCalculationBase, str]

ALL_FEE_BASES: Tuple[FeeCalculationBase, ...] = tuple(FeeCalculationBase)
TRANSFER_FEE_BASES: Tuple[FeeCalculationBase, ...] = (
    FeeCalculationBase.FIXED,
    FeeCalculationBase.TRANSACTION_AMOUNT,
)


@dataclass(frozen=True)
class FieldPolicy:
    """Which numeric inputs are enabled for a calculation base"""
    amount_enabled: bool
    percentage_enabled: bool


@dataclass(frozen=True)
class GatedFields:
    """Names of the draft fields a calculation base controls"""
    base: str
    amount: str
    percentage: str


FEE_FIELDS = GatedFields("fee_calculation_base", "fee_amount", "fee_percentage")
PENALTY_FIELDS = GatedFields("calculation_base", "penalty_amount", "penalty_percentage")


def coerce_enum(enum_cls: Type[E], value: Any) -> Optional[E]:
    """Enum member for a form value, None when empty or unknown"""
    if value is None or value == "":
        return None
    if isinstance(value, enum_cls):
        return value
    try:
        return enum_cls(value.value if isinstance(value, Enum) else value)
    except ValueError:
        return None


def field_policy(calculation_base: CalculationBase) -> FieldPolicy:
    """
    Decide which numeric fields apply to a calculation base

    FIXED takes an amount only, TRANSACTION_AMOUNT a percentage only, every
    other base (balance, outstanding balance, principal, interest) both.
    """
    value = calculation_base.value if isinstance(calculation_base, Enum) else calculation_base
    return FieldPolicy(
        amount_enabled=value != "TRANSACTION_AMOUNT",
        percentage_enabled=value != "FIXED",
    )


def legal_bases(fee_type: Optional[FeeType],
                transaction_type: Optional[TransactionType]) -> Tuple[FeeCalculationBase, ...]:
    """Calculation bases a fee may use"""
    if fee_type == FeeType.TRANSACTION and transaction_type == TransactionType.TRANSFER:
        return TRANSFER_FEE_BASES
    return ALL_FEE_BASES


def normalize_fee_draft(draft: Dict[str, Any]) -> Dict[str, Any]:
    """
    Bring a fee draft back to a legal calculation base

    Idempotent. An illegal or unset base is reset to FIXED. Returns a new
    dict; the input is left untouched.
    """
    result = dict(draft)
    fee_type = coerce_enum(FeeType, result.get("fee_type"))
    transaction_type = coerce_enum(TransactionType, result.get("transaction_type"))
    base = coerce_enum(FeeCalculationBase, result.get("fee_calculation_base"))

    if base not in legal_bases(fee_type, transaction_type):
        base = FeeCalculationBase.FIXED
    result["fee_calculation_base"] = base
    return result


def normalize_penalty_draft(draft: Dict[str, Any]) -> Dict[str, Any]:
    result = dict(draft)
    base = coerce_enum(PenaltyCalculationBase, result.get("calculation_base"))
    result["calculation_base"] = base or PenaltyCalculationBase.FIXED
    return result


def apply_field_policy(values: Dict[str, Any], gated: GatedFields) -> Dict[str, Any]:
    """Clear numeric fields the calculation base disables"""
    result = dict(values)
    base = result.get(gated.base)
    if base is None:
        return result
    policy = field_policy(base)
    if not policy.amount_enabled:
        result[gated.amount] = None
    if not policy.percentage_enabled:
        result[gated.percentage] = None
    return result


def apply_fee_field_policy(values: Dict[str, Any]) -> Dict[str, Any]:
    """Clear disabled fee fields, and the transaction type of non-transaction fees"""
    result = apply_field_policy(values, FEE_FIELDS)
    if coerce_enum(FeeType, result.get("fee_type")) != FeeType.TRANSACTION:
        result["transaction_type"] = None
    return result


def gate_errors(values: Dict[str, Any], gated: GatedFields) -> Dict[str, str]:
    """Required-field errors for the fields a calculation base enables"""
    base = values.get(gated.base)
    if base is None:
        return {}
    policy = field_policy(base)
    amount = values.get(gated.amount)
    percentage = values.get(gated.percentage)

    if policy.amount_enabled and not policy.percentage_enabled and amount is None:
        return {gated.amount: "amount is required for a FIXED calculation base"}
    if policy.percentage_enabled and not policy.amount_enabled and percentage is None:
        return {gated.percentage: "percentage is required for a TRANSACTION_AMOUNT calculation base"}
    if policy.amount_enabled and policy.percentage_enabled and amount is None and percentage is None:
        return {gated.amount: "an amount or a percentage is required"}
    return {}
