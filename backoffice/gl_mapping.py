"""
GL Mapping Type Compatibility

Decides which ledger accounts may receive a product's postings of a given
kind, and keeps a product to at most one mapping per mapping type. All checks
are local and synchronous: a bad pairing is rejected without a network call,
including at submit time when the selectable list may be stale.
"""

from typing import Dict, FrozenSet, Iterable, List, Mapping, Optional, Sequence

from .ledger import AccountType, LedgerAccount
from .products import MappingType, ProductCategory, ProductGLMapping


DUPLICATE_MAPPING_MESSAGE = "mapping of this type already exists"

ALLOWED_ACCOUNT_TYPES: Dict[MappingType, FrozenSet[AccountType]] = {
    MappingType.ASSET_ACCOUNT: frozenset({AccountType.ASSET}),
    MappingType.LIABILITY_ACCOUNT: frozenset({AccountType.LIABILITY}),
    MappingType.FEE_ACCOUNT: frozenset({AccountType.EXPENSE, AccountType.REVENUE}),
    MappingType.INTEREST_ACCOUNT: frozenset({AccountType.EXPENSE, AccountType.REVENUE}),
    MappingType.REVENUE_ACCOUNT: frozenset({AccountType.REVENUE}),
    MappingType.EXPENSE_ACCOUNT: frozenset({AccountType.EXPENSE}),
}


def allowed_types(mapping_type: MappingType) -> FrozenSet[AccountType]:
    """Account types a ledger account must have to receive this mapping"""
    return ALLOWED_ACCOUNT_TYPES[mapping_type]


def is_compatible(mapping_type: MappingType, ledger_account: LedgerAccount) -> bool:
    """True iff the account is ACTIVE and its type is allowed for the mapping"""
    return ledger_account.is_active and ledger_account.account_type in allowed_types(mapping_type)


def compatible_accounts(mapping_type: MappingType,
                        accounts: Iterable[LedgerAccount]) -> List[LedgerAccount]:
    """Ledger accounts that may be offered for selection, sorted by code"""
    return sorted(
        (account for account in accounts if is_compatible(mapping_type, account)),
        key=lambda account: account.code
    )


def describe_allowed_types(mapping_type: MappingType) -> str:
    names = sorted(account_type.value for account_type in allowed_types(mapping_type))
    return " or ".join(names)


def would_duplicate(existing_mappings: Iterable[ProductGLMapping],
                    new_mapping_type: MappingType,
                    excluding_id: Optional[int] = None) -> bool:
    """
    Check whether saving a mapping of this type would break uniqueness

    Used identically for create (nothing excluded) and edit (the row being
    edited is excluded so it can keep its own type).
    """
    return any(
        mapping.mapping_type == new_mapping_type and mapping.id != excluding_id
        for mapping in existing_mappings
    )


def validate_mapping(mapping_type: MappingType,
                     ledger_account_id: Optional[int],
                     accounts: Mapping[int, LedgerAccount],
                     existing_mappings: Sequence[ProductGLMapping],
                     excluding_id: Optional[int] = None) -> Dict[str, str]:
    """
    Validate a GL mapping before submission

    Returns:
        Field errors keyed by request field name, empty when valid
    """
    errors: Dict[str, str] = {}

    if would_duplicate(existing_mappings, mapping_type, excluding_id):
        errors["mapping_type"] = DUPLICATE_MAPPING_MESSAGE

    if ledger_account_id is None:
        errors["ledger_account_id"] = "ledger account is required"
        return errors

    account = accounts.get(ledger_account_id)
    if account is None:
        errors["ledger_account_id"] = "ledger account not found among active accounts"
    elif not account.is_active:
        errors["ledger_account_id"] = f"ledger account {account.code} is not active"
    elif account.account_type not in allowed_types(mapping_type):
        errors["ledger_account_id"] = (
            f"{mapping_type.value} requires a {describe_allowed_types(mapping_type)} account, "
            f"{account.code} is {account.account_type.value}"
        )

    return errors


def required_mapping_types(category: ProductCategory,
                           required: Mapping[str, Sequence[str]]) -> List[MappingType]:
    """Mapping types configured as mandatory for a product category"""
    return [MappingType(name) for name in required.get(category.value, [])]


def missing_mappings(category: ProductCategory,
                     existing_mappings: Iterable[ProductGLMapping],
                     required: Mapping[str, Sequence[str]]) -> List[MappingType]:
    """Mandatory mapping types the product does not hold yet"""
    present = {mapping.mapping_type for mapping in existing_mappings}
    return [
        mapping_type
        for mapping_type in required_mapping_types(category, required)
        if mapping_type not in present
    ]
