"""
Eligibility Rule Value Validation

The literal syntax of a rule value depends on the operator and declared data
type: IN / NOT_IN take a JSON array, every other operator a single scalar
parseable as the data type.
"""

import json
import re
from datetime import date
from typing import Dict, Optional

from .errors import ValidationError
from .products import EligibilityDataType, EligibilityOperator


LIST_OPERATORS = frozenset({EligibilityOperator.IN, EligibilityOperator.NOT_IN})

ORDERING_OPERATORS = frozenset({
    EligibilityOperator.GREATER_THAN,
    EligibilityOperator.GREATER_THAN_OR_EQUAL,
    EligibilityOperator.LESS_THAN,
    EligibilityOperator.LESS_THAN_OR_EQUAL,
})

ORDERED_DATA_TYPES = frozenset({EligibilityDataType.NUMBER, EligibilityDataType.DATE})
TEXT_DATA_TYPES = frozenset({EligibilityDataType.STRING, EligibilityDataType.ENUM})

_NUMBER_PATTERN = re.compile(r"^[+-]?(\d+(\.\d*)?|\.\d+)([eE][+-]?\d+)?$")
_DATE_PATTERN = re.compile(r"^\d{4}-\d{2}-\d{2}$")


def _scalar_error(data_type: EligibilityDataType, value: str) -> Optional[str]:
    text = value.strip()
    if not text:
        return "rule value is required"

    if data_type == EligibilityDataType.NUMBER:
        if not _NUMBER_PATTERN.match(text):
            return f"'{value}' is not a numeric literal"
    elif data_type == EligibilityDataType.BOOLEAN:
        if text not in ("true", "false"):
            return "rule value must be 'true' or 'false'"
    elif data_type == EligibilityDataType.DATE:
        if not _DATE_PATTERN.match(text):
            return f"'{value}' is not an ISO date (YYYY-MM-DD)"
        try:
            date.fromisoformat(text)
        except ValueError:
            return f"'{value}' is not a valid calendar date"
    return None


def rule_value_error(operator: EligibilityOperator,
                     data_type: EligibilityDataType,
                     rule_value: Optional[str]) -> Optional[str]:
    """Error message for a rule value, None when its syntax is valid"""
    if rule_value is None:
        return "rule value is required"

    if operator in LIST_OPERATORS:
        try:
            parsed = json.loads(rule_value)
        except (TypeError, ValueError):
            return f"{operator.value} requires a JSON array literal, e.g. [\"A\",\"B\"]"
        if not isinstance(parsed, list):
            return f"{operator.value} requires a JSON array literal, e.g. [\"A\",\"B\"]"
        return None

    return _scalar_error(data_type, rule_value)


def validate_rule_value(operator: EligibilityOperator,
                        data_type: EligibilityDataType,
                        rule_value: Optional[str]) -> None:
    """
    Check a rule value's literal syntax

    Raises:
        ValidationError: keyed on rule_value when the syntax does not match
    """
    message = rule_value_error(operator, data_type, rule_value)
    if message:
        raise ValidationError.single("rule_value", message)


def operator_errors(operator: EligibilityOperator,
                    data_type: EligibilityDataType) -> Dict[str, str]:
    """Operators that only make sense for some data types"""
    if operator in ORDERING_OPERATORS and data_type not in ORDERED_DATA_TYPES:
        return {"operator": f"{operator.value} applies to NUMBER or DATE values only"}
    if operator == EligibilityOperator.CONTAINS and data_type not in TEXT_DATA_TYPES:
        return {"operator": "CONTAINS applies to STRING or ENUM values only"}
    return {}
