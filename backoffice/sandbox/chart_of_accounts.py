"""
Chart of accounts endpoints
"""

from typing import Optional
from fastapi import APIRouter, HTTPException, Depends, Query, status

from ..schemas import CreateChartOfAccountRequest, UpdateChartOfAccountRequest
from .dependencies import CHART_OF_ACCOUNTS, LEDGER_ACCOUNTS, get_store
from .store import SandboxStore


router = APIRouter()


def _by_code(store: SandboxStore, code: str) -> dict:
    entry = store.find_one(CHART_OF_ACCOUNTS, {"code": code})
    if entry is None:
        raise HTTPException(status_code=404, detail=f"Chart of account {code} not found")
    return entry


@router.get("")
async def list_chart_of_accounts(
    is_active: Optional[bool] = Query(None, alias="isActive"),
    store: SandboxStore = Depends(get_store)
):
    """List chart of accounts entries"""
    return store.find(CHART_OF_ACCOUNTS, {"isActive": is_active})


@router.get("/by-code/{code}")
async def get_chart_of_account_by_code(code: str, store: SandboxStore = Depends(get_store)):
    return _by_code(store, code)


@router.get("/{code}/children")
async def get_children(code: str, store: SandboxStore = Depends(get_store)):
    """List direct children of an entry"""
    _by_code(store, code)
    return store.find(CHART_OF_ACCOUNTS, {"parentCode": code})


@router.get("/{account_id}")
async def get_chart_of_account(account_id: int, store: SandboxStore = Depends(get_store)):
    return store.load(CHART_OF_ACCOUNTS, account_id)


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_chart_of_account(
    request: CreateChartOfAccountRequest,
    store: SandboxStore = Depends(get_store)
):
    """Create an entry; its level is derived from the parent"""
    if store.find_one(CHART_OF_ACCOUNTS, {"code": request.code}):
        raise HTTPException(status_code=409, detail=f"Chart of account code {request.code} already exists")

    data = request.to_wire()
    data["level"] = 1
    if request.parent_code:
        parent = store.find_one(CHART_OF_ACCOUNTS, {"code": request.parent_code})
        if parent is None:
            raise HTTPException(status_code=400, detail=f"Parent account {request.parent_code} not found")
        if parent["accountType"] != request.account_type.value:
            raise HTTPException(status_code=400, detail="Account type must match parent account type")
        data["level"] = parent["level"] + 1

    return store.insert(CHART_OF_ACCOUNTS, data)


@router.put("/{account_id}")
async def update_chart_of_account(
    account_id: int,
    request: UpdateChartOfAccountRequest,
    store: SandboxStore = Depends(get_store)
):
    current = store.load(CHART_OF_ACCOUNTS, account_id)
    changes = request.to_wire()

    parent_code = changes.get("parentCode", current.get("parentCode"))
    account_type = changes.get("accountType", current["accountType"])
    if parent_code:
        parent = store.find_one(CHART_OF_ACCOUNTS, {"code": parent_code})
        if parent is None:
            raise HTTPException(status_code=400, detail=f"Parent account {parent_code} not found")
        if parent["accountType"] != account_type:
            raise HTTPException(status_code=400, detail="Account type must match parent account type")
        changes["level"] = parent["level"] + 1
    elif "parentCode" in changes:
        # Detached to the root
        changes["parentCode"] = None
        changes["level"] = 1

    return store.update(CHART_OF_ACCOUNTS, account_id, changes)


@router.delete("/{account_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_chart_of_account(account_id: int, store: SandboxStore = Depends(get_store)):
    """Delete an entry that has no children and no ledger accounts"""
    entry = store.load(CHART_OF_ACCOUNTS, account_id)
    if store.count(CHART_OF_ACCOUNTS, {"parentCode": entry["code"]}):
        raise HTTPException(status_code=409, detail="Cannot delete an account that has child accounts")
    if store.count(LEDGER_ACCOUNTS, {"chartOfAccountCode": entry["code"]}):
        raise HTTPException(status_code=409, detail="Cannot delete an account used by ledger accounts")
    store.delete(CHART_OF_ACCOUNTS, account_id)
