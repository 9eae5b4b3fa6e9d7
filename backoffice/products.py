"""
Product Configuration Module

Product definitions and the configuration rows attached to them: interest
rates, fees, limits, tenor periods, penalties, eligibility rules and GL
mappings. Every row kind except GL mappings carries an effective window
(effective_from, effective_to, is_active).
"""

from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from enum import Enum
from typing import Dict, List, Optional, Type

from .records import ApiRecord


class ProductCategory(Enum):
    """Product families offered by the bank"""
    CURRENT_ACCOUNT = "CURRENT_ACCOUNT"
    SAVINGS_ACCOUNT = "SAVINGS_ACCOUNT"
    TERM_DEPOSIT = "TERM_DEPOSIT"
    LOAN = "LOAN"
    CARD = "CARD"


class ProductStatus(Enum):
    """Product lifecycle status"""
    ACTIVE = "ACTIVE"       # Available for new accounts
    INACTIVE = "INACTIVE"   # Withdrawn from sale
    DRAFT = "DRAFT"         # Being configured


class RateType(Enum):
    DEPOSIT = "DEPOSIT"
    LENDING = "LENDING"
    PENALTY = "PENALTY"


class CalculationMethod(Enum):
    SIMPLE = "SIMPLE"
    COMPOUND = "COMPOUND"
    FLOATING = "FLOATING"


class CompoundingFrequency(Enum):
    DAILY = "DAILY"
    MONTHLY = "MONTHLY"
    QUARTERLY = "QUARTERLY"
    YEARLY = "YEARLY"


class FeeType(Enum):
    """When a fee is charged"""
    OPENING = "OPENING"
    MONTHLY = "MONTHLY"
    ANNUAL = "ANNUAL"
    TRANSACTION = "TRANSACTION"
    WITHDRAWAL = "WITHDRAWAL"
    OVERDRAFT = "OVERDRAFT"
    LATE_PAYMENT = "LATE_PAYMENT"
    EARLY_WITHDRAWAL = "EARLY_WITHDRAWAL"
    CARD_ISSUANCE = "CARD_ISSUANCE"
    CARD_RENEWAL = "CARD_RENEWAL"
    OTHER = "OTHER"


class TransactionType(Enum):
    """Transaction kinds a TRANSACTION fee can be attached to"""
    DEPOSIT = "DEPOSIT"
    WITHDRAWAL = "WITHDRAWAL"
    TRANSFER = "TRANSFER"
    FEE = "FEE"
    INTEREST = "INTEREST"
    ADJUSTMENT = "ADJUSTMENT"
    REVERSAL = "REVERSAL"


class FeeCalculationBase(Enum):
    """Quantity a fee is computed against"""
    FIXED = "FIXED"
    BALANCE = "BALANCE"
    TRANSACTION_AMOUNT = "TRANSACTION_AMOUNT"
    OUTSTANDING_BALANCE = "OUTSTANDING_BALANCE"


class LimitType(Enum):
    MIN_BALANCE = "MIN_BALANCE"
    MAX_BALANCE = "MAX_BALANCE"
    MIN_TRANSACTION = "MIN_TRANSACTION"
    MAX_TRANSACTION = "MAX_TRANSACTION"
    DAILY_LIMIT = "DAILY_LIMIT"
    MONTHLY_LIMIT = "MONTHLY_LIMIT"
    ANNUAL_LIMIT = "ANNUAL_LIMIT"
    MIN_LOAN_AMOUNT = "MIN_LOAN_AMOUNT"
    MAX_LOAN_AMOUNT = "MAX_LOAN_AMOUNT"
    MIN_DEPOSIT_AMOUNT = "MIN_DEPOSIT_AMOUNT"
    MAX_DEPOSIT_AMOUNT = "MAX_DEPOSIT_AMOUNT"
    CARD_LIMIT = "CARD_LIMIT"
    WITHDRAWAL_LIMIT = "WITHDRAWAL_LIMIT"


class PeriodType(Enum):
    TRANSACTION = "TRANSACTION"
    DAILY = "DAILY"
    WEEKLY = "WEEKLY"
    MONTHLY = "MONTHLY"
    ANNUAL = "ANNUAL"
    LIFETIME = "LIFETIME"


class PenaltyType(Enum):
    EARLY_WITHDRAWAL = "EARLY_WITHDRAWAL"
    OVERDRAFT = "OVERDRAFT"
    LATE_PAYMENT = "LATE_PAYMENT"
    MIN_BALANCE_VIOLATION = "MIN_BALANCE_VIOLATION"
    EXCESS_TRANSACTION = "EXCESS_TRANSACTION"
    PREPAYMENT = "PREPAYMENT"
    OTHER = "OTHER"


class PenaltyCalculationBase(Enum):
    """Quantity a penalty is computed against"""
    FIXED = "FIXED"
    PRINCIPAL = "PRINCIPAL"
    INTEREST = "INTEREST"
    BALANCE = "BALANCE"
    TRANSACTION_AMOUNT = "TRANSACTION_AMOUNT"


class EligibilityRuleType(Enum):
    MIN_AGE = "MIN_AGE"
    MAX_AGE = "MAX_AGE"
    MIN_INCOME = "MIN_INCOME"
    MIN_BALANCE = "MIN_BALANCE"
    CLIENT_TYPE = "CLIENT_TYPE"
    CLIENT_STATUS = "CLIENT_STATUS"
    RESIDENCY = "RESIDENCY"
    KYC_LEVEL = "KYC_LEVEL"
    RISK_SCORE = "RISK_SCORE"
    PEP_FLAG = "PEP_FLAG"
    OTHER = "OTHER"


class EligibilityOperator(Enum):
    EQUALS = "EQUALS"
    NOT_EQUALS = "NOT_EQUALS"
    GREATER_THAN = "GREATER_THAN"
    GREATER_THAN_OR_EQUAL = "GREATER_THAN_OR_EQUAL"
    LESS_THAN = "LESS_THAN"
    LESS_THAN_OR_EQUAL = "LESS_THAN_OR_EQUAL"
    IN = "IN"
    NOT_IN = "NOT_IN"
    CONTAINS = "CONTAINS"


class EligibilityDataType(Enum):
    STRING = "STRING"
    NUMBER = "NUMBER"
    BOOLEAN = "BOOLEAN"
    DATE = "DATE"
    ENUM = "ENUM"


class MappingType(Enum):
    """Kinds of postings a product routes to a ledger account"""
    ASSET_ACCOUNT = "ASSET_ACCOUNT"
    LIABILITY_ACCOUNT = "LIABILITY_ACCOUNT"
    FEE_ACCOUNT = "FEE_ACCOUNT"
    INTEREST_ACCOUNT = "INTEREST_ACCOUNT"
    REVENUE_ACCOUNT = "REVENUE_ACCOUNT"
    EXPENSE_ACCOUNT = "EXPENSE_ACCOUNT"


@dataclass(frozen=True)
class Product(ApiRecord):
    """Product template/definition"""
    code: str
    name: str
    category: ProductCategory
    status: ProductStatus
    currency: str
    description: Optional[str] = None
    min_balance: Optional[Decimal] = None
    max_balance: Optional[Decimal] = None
    default_interest_rate: Optional[Decimal] = None

    @property
    def is_active(self) -> bool:
        return self.status == ProductStatus.ACTIVE


@dataclass(frozen=True)
class ProductInterestRate(ApiRecord):
    product_id: int
    rate_type: RateType
    rate_value: Decimal
    calculation_method: CalculationMethod
    effective_from: date
    min_amount: Optional[Decimal] = None
    max_amount: Optional[Decimal] = None
    min_period_days: Optional[int] = None
    max_period_days: Optional[int] = None
    compounding_frequency: Optional[CompoundingFrequency] = None
    effective_to: Optional[date] = None
    is_active: bool = True

    @property
    def discriminator(self):
        return self.rate_type


@dataclass(frozen=True)
class ProductFee(ApiRecord):
    product_id: int
    fee_type: FeeType
    fee_name: str
    fee_calculation_base: FeeCalculationBase
    currency: str
    effective_from: date
    transaction_type: Optional[TransactionType] = None
    fee_amount: Optional[Decimal] = None
    fee_percentage: Optional[Decimal] = None
    min_fee: Optional[Decimal] = None
    max_fee: Optional[Decimal] = None
    is_waivable: bool = False
    effective_to: Optional[date] = None
    is_active: bool = True

    @property
    def discriminator(self):
        return (self.fee_type, self.transaction_type)


@dataclass(frozen=True)
class ProductLimit(ApiRecord):
    product_id: int
    limit_type: LimitType
    limit_value: Decimal
    currency: str
    effective_from: date
    period_type: Optional[PeriodType] = None
    effective_to: Optional[date] = None
    is_active: bool = True

    @property
    def discriminator(self):
        return (self.limit_type, self.period_type)


@dataclass(frozen=True)
class ProductPeriod(ApiRecord):
    """Tenor offered for term products"""
    product_id: int
    period_name: str
    period_days: int
    effective_from: date
    period_months: Optional[int] = None
    period_years: Optional[int] = None
    interest_rate: Optional[Decimal] = None
    min_amount: Optional[Decimal] = None
    max_amount: Optional[Decimal] = None
    display_order: int = 0
    effective_to: Optional[date] = None
    is_active: bool = True

    @property
    def discriminator(self):
        return self.period_days


@dataclass(frozen=True)
class ProductPenalty(ApiRecord):
    product_id: int
    penalty_type: PenaltyType
    penalty_name: str
    calculation_base: PenaltyCalculationBase
    currency: str
    effective_from: date
    penalty_amount: Optional[Decimal] = None
    penalty_percentage: Optional[Decimal] = None
    min_penalty: Optional[Decimal] = None
    max_penalty: Optional[Decimal] = None
    grace_period_days: Optional[int] = None
    effective_to: Optional[date] = None
    is_active: bool = True

    @property
    def discriminator(self):
        return self.penalty_type


@dataclass(frozen=True)
class ProductEligibilityRule(ApiRecord):
    product_id: int
    rule_type: EligibilityRuleType
    rule_name: str
    operator: EligibilityOperator
    rule_value: str
    data_type: EligibilityDataType
    effective_from: date
    is_mandatory: bool = True
    error_message: Optional[str] = None
    effective_to: Optional[date] = None
    is_active: bool = True

    @property
    def discriminator(self):
        return self.rule_type


@dataclass(frozen=True)
class ProductGLMapping(ApiRecord):
    """Routes one kind of posting for a product to a ledger account"""
    product_id: int
    mapping_type: MappingType
    ledger_account_id: int
    ledger_account_code: Optional[str] = None
    description: Optional[str] = None


class ConfigKind(Enum):
    """Configuration tabs of a product, with their REST path segment"""
    INTEREST_RATES = "interest-rates"
    FEES = "fees"
    LIMITS = "limits"
    PERIODS = "periods"
    PENALTIES = "penalties"
    ELIGIBILITY_RULES = "eligibility-rules"
    GL_MAPPINGS = "gl-mappings"

    @property
    def path(self) -> str:
        return self.value

    @property
    def record_class(self) -> Type[ApiRecord]:
        return _RECORD_CLASSES[self]

    @property
    def label(self) -> str:
        return _LABELS[self]

    @property
    def is_windowed(self) -> bool:
        return self is not ConfigKind.GL_MAPPINGS


_RECORD_CLASSES: Dict[ConfigKind, Type[ApiRecord]] = {
    ConfigKind.INTEREST_RATES: ProductInterestRate,
    ConfigKind.FEES: ProductFee,
    ConfigKind.LIMITS: ProductLimit,
    ConfigKind.PERIODS: ProductPeriod,
    ConfigKind.PENALTIES: ProductPenalty,
    ConfigKind.ELIGIBILITY_RULES: ProductEligibilityRule,
    ConfigKind.GL_MAPPINGS: ProductGLMapping,
}

_LABELS: Dict[ConfigKind, str] = {
    ConfigKind.INTEREST_RATES: "interest rates",
    ConfigKind.FEES: "fees",
    ConfigKind.LIMITS: "limits",
    ConfigKind.PERIODS: "periods",
    ConfigKind.PENALTIES: "penalties",
    ConfigKind.ELIGIBILITY_RULES: "eligibility rules",
    ConfigKind.GL_MAPPINGS: "GL mappings",
}


ConfigurationSet = Dict[ConfigKind, List[ApiRecord]]


def empty_configuration_set() -> ConfigurationSet:
    return {kind: [] for kind in ConfigKind}


def configuration_dependencies(config_set: ConfigurationSet) -> Dict[ConfigKind, int]:
    """Count configuration rows per kind, omitting empty kinds"""
    return {kind: len(rows) for kind, rows in config_set.items() if rows}


def deletion_blockers(config_set: ConfigurationSet) -> List[str]:
    """
    Explain why a product cannot be deleted yet

    A product is only deletable once every configuration row has been
    removed. Returns one line per non-empty kind, empty when deletable.
    """
    return [
        f"{count} {kind.label}"
        for kind, count in configuration_dependencies(config_set).items()
    ]
