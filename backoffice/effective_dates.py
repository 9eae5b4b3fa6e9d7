"""
Effective Window Resolution

Configuration rows apply during [effective_from, effective_to]; a missing
effective_to means open-ended. A row is currently effective when it is active
and today falls inside its window.

Overlapping windows among rows of the same kind are accepted by the remote
service. They are reported as warnings, and when one row has to be picked
the latest effective_from wins, ties going to the highest id.
"""

from dataclasses import dataclass
from datetime import date
from typing import Any, Dict, Hashable, Iterable, List, Optional, Sequence, Tuple

from .products import ConfigKind, ConfigurationSet


def _today() -> date:
    return date.today()


def is_currently_effective(row: Any, as_of: Optional[date] = None) -> bool:
    """True iff the row is active and as_of lies inside its window"""
    as_of = as_of or _today()
    if not row.is_active:
        return False
    if row.effective_from > as_of:
        return False
    return row.effective_to is None or as_of <= row.effective_to


def windows_intersect(from_a: date, to_a: Optional[date],
                      from_b: date, to_b: Optional[date]) -> bool:
    """Closed-interval intersection, a None end being +infinity"""
    a_starts_before_b_ends = to_b is None or from_a <= to_b
    b_starts_before_a_ends = to_a is None or from_b <= to_a
    return a_starts_before_b_ends and b_starts_before_a_ends


def overlaps(row_a: Any, row_b: Any) -> bool:
    """True iff the two rows' effective windows intersect"""
    return windows_intersect(row_a.effective_from, row_a.effective_to,
                             row_b.effective_from, row_b.effective_to)


def window_errors(effective_from: Optional[date],
                  effective_to: Optional[date]) -> Dict[str, str]:
    """Field errors for a malformed window"""
    if effective_from is None:
        return {"effective_from": "effective from date is required"}
    if effective_to is not None and effective_to < effective_from:
        return {"effective_to": "effective to date must not precede effective from date"}
    return {}


def currently_effective(rows: Iterable[Any], as_of: Optional[date] = None) -> List[Any]:
    """Rows that apply on as_of, e.g. the ones offered when opening an account today"""
    as_of = as_of or _today()
    return [row for row in rows if is_currently_effective(row, as_of)]


def open_configuration_count(config_set: ConfigurationSet,
                             as_of: Optional[date] = None) -> int:
    """Number of currently effective windowed rows across all kinds"""
    as_of = as_of or _today()
    return sum(
        len(currently_effective(rows, as_of))
        for kind, rows in config_set.items()
        if kind.is_windowed
    )


@dataclass(frozen=True)
class OverlapWarning:
    """Two active rows of the same kind and discriminator with intersecting windows"""
    kind: ConfigKind
    first_id: int
    second_id: int
    discriminator: Hashable

    @property
    def message(self) -> str:
        return (f"{self.kind.label} #{self.first_id} and #{self.second_id} "
                f"have overlapping effective windows")


def _discriminator(row: Any) -> Hashable:
    return getattr(row, "discriminator", None)


def find_overlaps(kind: ConfigKind, rows: Sequence[Any]) -> List[OverlapWarning]:
    """
    Pairs of active rows sharing a discriminator whose windows intersect

    The discriminator is what makes two rows compete (same rate type, same
    fee and transaction type, same limit and period type, ...).
    """
    active = sorted((row for row in rows if row.is_active), key=lambda row: row.id)
    warnings = []
    for index, first in enumerate(active):
        for second in active[index + 1:]:
            if _discriminator(first) != _discriminator(second):
                continue
            if overlaps(first, second):
                warnings.append(OverlapWarning(kind, first.id, second.id, _discriminator(first)))
    return warnings


def overlap_warnings(config_set: ConfigurationSet) -> List[OverlapWarning]:
    warnings = []
    for kind, rows in config_set.items():
        if kind.is_windowed:
            warnings.extend(find_overlaps(kind, rows))
    return warnings


def _precedence(row: Any) -> Tuple[date, int]:
    return (row.effective_from, row.id)


def resolve_effective(rows: Iterable[Any], as_of: Optional[date] = None) -> Dict[Hashable, Any]:
    """
    Pick the single applicable row per discriminator

    Among currently effective rows sharing a discriminator, the one with the
    latest effective_from wins; equal starts fall back to the highest id.
    """
    winners: Dict[Hashable, Any] = {}
    for row in currently_effective(rows, as_of):
        key = _discriminator(row)
        current = winners.get(key)
        if current is None or _precedence(row) > _precedence(current):
            winners[key] = row
    return winners
