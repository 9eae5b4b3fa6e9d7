"""
Pydantic schemas for requests sent to the back-office service

Requests are immutable. Create and update requests are distinct types: for
configuration rows an update is a full replacement carrying every field, for
products and accounts it is partial and only set fields are sent.
"""

from datetime import date
from decimal import Decimal
from typing import Any, Dict, Optional, Tuple, Type

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from .ledger import AccountType, LedgerAccountStatus
from .products import (
    ConfigKind, ProductCategory, ProductStatus, RateType, CalculationMethod,
    CompoundingFrequency, FeeType, TransactionType, FeeCalculationBase,
    LimitType, PeriodType, PenaltyType, PenaltyCalculationBase,
    EligibilityRuleType, EligibilityOperator, EligibilityDataType, MappingType
)


class RequestModel(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True, alias_generator=to_camel)

    def to_wire(self) -> Dict[str, Any]:
        """camelCase JSON body, cleared fields sent as null"""
        return self.model_dump(mode="json", by_alias=True)


class PartialRequestModel(RequestModel):

    def to_wire(self) -> Dict[str, Any]:
        """camelCase JSON body with only the fields being changed"""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


# Chart of accounts schemas
# On update, parent_code None keeps the current parent and ROOT_PARENT_CODE
# detaches the entry to the top of the hierarchy
ROOT_PARENT_CODE = ""


class CreateChartOfAccountRequest(RequestModel):
    code: str = Field(..., min_length=1)
    name: str = Field(..., min_length=1)
    account_type: AccountType
    description: Optional[str] = None
    category: Optional[str] = None
    parent_code: Optional[str] = None
    level: Optional[int] = Field(None, ge=1)
    is_active: bool = True


class UpdateChartOfAccountRequest(PartialRequestModel):
    name: Optional[str] = None
    description: Optional[str] = None
    account_type: Optional[AccountType] = None
    category: Optional[str] = None
    parent_code: Optional[str] = None
    level: Optional[int] = Field(None, ge=1)
    is_active: Optional[bool] = None


# Ledger account schemas
class CreateLedgerAccountRequest(RequestModel):
    code: str = Field(..., min_length=1)
    name: str = Field(..., min_length=1)
    chart_of_account_code: str = Field(..., min_length=1)
    account_type: AccountType
    currency: str
    status: LedgerAccountStatus = LedgerAccountStatus.ACTIVE


class UpdateLedgerAccountRequest(PartialRequestModel):
    name: Optional[str] = None
    account_type: Optional[AccountType] = None
    currency: Optional[str] = None
    status: Optional[LedgerAccountStatus] = None


# Product schemas
class CreateProductRequest(RequestModel):
    code: str = Field(..., min_length=1)
    name: str = Field(..., min_length=1)
    category: ProductCategory
    description: Optional[str] = None
    currency: Optional[str] = None
    min_balance: Optional[Decimal] = None
    max_balance: Optional[Decimal] = None
    default_interest_rate: Optional[Decimal] = None


class UpdateProductRequest(PartialRequestModel):
    name: Optional[str] = None
    description: Optional[str] = None
    status: Optional[ProductStatus] = None
    currency: Optional[str] = None
    min_balance: Optional[Decimal] = None
    max_balance: Optional[Decimal] = None
    default_interest_rate: Optional[Decimal] = None


# Configuration row schemas
class WindowedRequest(RequestModel):
    effective_from: date
    effective_to: Optional[date] = None
    is_active: bool = True


class CreateInterestRateRequest(WindowedRequest):
    rate_type: RateType
    rate_value: Decimal = Field(..., ge=0)
    calculation_method: CalculationMethod
    compounding_frequency: Optional[CompoundingFrequency] = None
    min_amount: Optional[Decimal] = Field(None, ge=0)
    max_amount: Optional[Decimal] = Field(None, ge=0)
    min_period_days: Optional[int] = Field(None, ge=0)
    max_period_days: Optional[int] = Field(None, ge=0)


class UpdateInterestRateRequest(CreateInterestRateRequest):
    pass


class CreateFeeRequest(WindowedRequest):
    fee_type: FeeType
    fee_name: str = Field(..., min_length=1)
    fee_calculation_base: FeeCalculationBase
    transaction_type: Optional[TransactionType] = None
    fee_amount: Optional[Decimal] = Field(None, ge=0)
    fee_percentage: Optional[Decimal] = Field(None, ge=0)
    min_fee: Optional[Decimal] = Field(None, ge=0)
    max_fee: Optional[Decimal] = Field(None, ge=0)
    currency: Optional[str] = None
    is_waivable: bool = False


class UpdateFeeRequest(CreateFeeRequest):
    pass


class CreateLimitRequest(WindowedRequest):
    limit_type: LimitType
    limit_value: Decimal = Field(..., ge=0)
    currency: Optional[str] = None
    period_type: Optional[PeriodType] = None


class UpdateLimitRequest(CreateLimitRequest):
    pass


class CreatePeriodRequest(WindowedRequest):
    period_name: str = Field(..., min_length=1)
    period_days: int = Field(..., ge=1)
    period_months: Optional[int] = Field(None, ge=0)
    period_years: Optional[int] = Field(None, ge=0)
    interest_rate: Optional[Decimal] = Field(None, ge=0)
    min_amount: Optional[Decimal] = Field(None, ge=0)
    max_amount: Optional[Decimal] = Field(None, ge=0)
    display_order: int = 0


class UpdatePeriodRequest(CreatePeriodRequest):
    pass


class CreatePenaltyRequest(WindowedRequest):
    penalty_type: PenaltyType
    penalty_name: str = Field(..., min_length=1)
    calculation_base: PenaltyCalculationBase
    penalty_amount: Optional[Decimal] = Field(None, ge=0)
    penalty_percentage: Optional[Decimal] = Field(None, ge=0)
    min_penalty: Optional[Decimal] = Field(None, ge=0)
    max_penalty: Optional[Decimal] = Field(None, ge=0)
    currency: Optional[str] = None
    grace_period_days: Optional[int] = Field(None, ge=0)


class UpdatePenaltyRequest(CreatePenaltyRequest):
    pass


class CreateEligibilityRuleRequest(WindowedRequest):
    rule_type: EligibilityRuleType
    rule_name: str = Field(..., min_length=1)
    operator: EligibilityOperator
    rule_value: str = Field(..., min_length=1)
    data_type: EligibilityDataType
    is_mandatory: bool = True
    error_message: Optional[str] = None


class UpdateEligibilityRuleRequest(CreateEligibilityRuleRequest):
    pass


class CreateGLMappingRequest(RequestModel):
    mapping_type: MappingType
    ledger_account_id: int
    description: Optional[str] = None


class UpdateGLMappingRequest(CreateGLMappingRequest):
    pass


REQUEST_MODELS: Dict[ConfigKind, Tuple[Type[RequestModel], Type[RequestModel]]] = {
    ConfigKind.INTEREST_RATES: (CreateInterestRateRequest, UpdateInterestRateRequest),
    ConfigKind.FEES: (CreateFeeRequest, UpdateFeeRequest),
    ConfigKind.LIMITS: (CreateLimitRequest, UpdateLimitRequest),
    ConfigKind.PERIODS: (CreatePeriodRequest, UpdatePeriodRequest),
    ConfigKind.PENALTIES: (CreatePenaltyRequest, UpdatePenaltyRequest),
    ConfigKind.ELIGIBILITY_RULES: (CreateEligibilityRuleRequest, UpdateEligibilityRuleRequest),
    ConfigKind.GL_MAPPINGS: (CreateGLMappingRequest, UpdateGLMappingRequest),
}


def create_model_for(kind: ConfigKind) -> Type[RequestModel]:
    return REQUEST_MODELS[kind][0]


def update_model_for(kind: ConfigKind) -> Type[RequestModel]:
    return REQUEST_MODELS[kind][1]
