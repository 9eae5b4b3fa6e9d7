"""
Record Base Module

Immutable value records as received from the back-office service. The wire
format uses camelCase keys, ISO dates and decimals as numbers or strings;
records use snake_case attributes, date objects and Decimal.
"""

from dataclasses import dataclass, fields, MISSING
from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import Any, Dict, List, Type, TypeVar, Union, get_args, get_origin, get_type_hints

from pydantic.alias_generators import to_camel


R = TypeVar("R", bound="ApiRecord")


def parse_date(value: Union[str, date]) -> date:
    """Parse an ISO date, accepting full timestamps"""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if not isinstance(value, str) or not value.strip():
        raise ValueError(f"Cannot convert {value!r} to a date")
    return date.fromisoformat(value.strip()[:10])


def parse_decimal(value: Any) -> Decimal:
    """
    Convert a wire or form value to Decimal

    Floats go through str() so 0.1 stays 0.1.

    Raises:
        ValueError: If the value is not a finite number
    """
    if isinstance(value, bool):
        raise ValueError(f"Cannot convert {value!r} to Decimal")
    if isinstance(value, Decimal):
        result = value
    else:
        text = str(value).strip()
        if not text:
            raise ValueError("Value must be a non-empty number")
        try:
            result = Decimal(text)
        except InvalidOperation:
            raise ValueError(f"Cannot convert '{value}' to Decimal")
    if not result.is_finite():
        raise ValueError(f"Cannot convert '{value}' to Decimal")
    return result


def parse_bool(value: Any) -> bool:
    """Accept JSON booleans and the literals 'true' / 'false'"""
    if isinstance(value, bool):
        return value
    if isinstance(value, str) and value.strip().lower() in ("true", "false"):
        return value.strip().lower() == "true"
    raise ValueError(f"Cannot convert {value!r} to a boolean")


def _convert(hint: Any, value: Any) -> Any:
    if value is None:
        return None

    if get_origin(hint) is Union:
        candidates = [arg for arg in get_args(hint) if arg is not type(None)]
        return _convert(candidates[0], value)

    if isinstance(hint, type):
        if issubclass(hint, Enum):
            return hint(value)
        if hint is date:
            return parse_date(value)
        if hint is Decimal:
            return parse_decimal(value)
        if hint is bool:
            return parse_bool(value)
        if hint is int:
            return int(value)
        if hint is str:
            return str(value)
    return value


def _is_optional(hint: Any) -> bool:
    return get_origin(hint) is Union and type(None) in get_args(hint)


@dataclass(frozen=True)
class ApiRecord:
    """Base class for all records received from the remote service"""
    id: int

    @classmethod
    def from_wire(cls: Type[R], data: Dict[str, Any]) -> R:
        """
        Create instance from a camelCase JSON object, ignoring unknown keys

        Raises:
            ValueError: If the payload is not an object, misses a required
                key or holds a value of the wrong shape (e.g. an unknown enum)
        """
        if not isinstance(data, dict):
            raise ValueError(f"{cls.__name__} payload must be a JSON object")
        hints = get_type_hints(cls)
        values = {}
        for f in fields(cls):
            hint = hints[f.name]
            camel = to_camel(f.name)
            if camel in data:
                raw = data[camel]
            elif f.name in data:
                raw = data[f.name]
            elif f.default is not MISSING or f.default_factory is not MISSING:
                continue
            elif _is_optional(hint):
                raw = None
            else:
                raise ValueError(f"{cls.__name__} payload is missing '{camel}'")
            values[f.name] = _convert(hint, raw)
        return cls(**values)

    @classmethod
    def from_wire_list(cls: Type[R], items: Any) -> List[R]:
        if items is None:
            return []
        if not isinstance(items, list):
            raise ValueError(f"{cls.__name__} list payload must be a JSON array")
        return [cls.from_wire(item) for item in items]
