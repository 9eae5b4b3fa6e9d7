"""
Cross-entity references

A related entity shown on a page (the product of a configuration tab, the
ledger account behind a GL mapping) is either not requested yet, in flight,
loaded, or failed to load. Display code checks which one it holds instead of
chaining fallbacks; a failed read degrades to a placeholder.
"""

from dataclasses import dataclass
from typing import Callable, Generic, Optional, TypeVar, Union


T = TypeVar("T")


@dataclass(frozen=True)
class Unloaded:
    pass


@dataclass(frozen=True)
class Loading:
    pass


@dataclass(frozen=True)
class Loaded(Generic[T]):
    value: T


@dataclass(frozen=True)
class Failed:
    message: str


Reference = Union[Unloaded, Loading, Loaded[T], Failed]

UNLOADED = Unloaded()
LOADING = Loading()


def value_or_none(ref: "Reference[T]") -> Optional[T]:
    if isinstance(ref, Loaded):
        return ref.value
    return None


def display(ref: "Reference[T]", render: Callable[[T], str], placeholder: str = "-") -> str:
    """Text for a reference: rendered value once loaded, placeholder otherwise"""
    if isinstance(ref, Loaded):
        return render(ref.value)
    if isinstance(ref, Loading):
        return "…"
    return placeholder
