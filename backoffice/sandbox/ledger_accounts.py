"""
Ledger account endpoints
"""

from typing import Optional
from fastapi import APIRouter, HTTPException, Depends, Query, status

from ..ledger import AccountType, LedgerAccountStatus
from ..products import ConfigKind
from ..schemas import CreateLedgerAccountRequest, UpdateLedgerAccountRequest
from .dependencies import CHART_OF_ACCOUNTS, LEDGER_ACCOUNTS, configuration_table, get_store
from .store import SandboxStore


router = APIRouter()


@router.get("")
async def list_ledger_accounts(
    account_status: Optional[LedgerAccountStatus] = Query(None, alias="status"),
    account_type: Optional[AccountType] = Query(None, alias="accountType"),
    store: SandboxStore = Depends(get_store)
):
    """List ledger accounts"""
    return store.find(LEDGER_ACCOUNTS, {
        "status": account_status.value if account_status else None,
        "accountType": account_type.value if account_type else None,
    })


@router.get("/{account_id}")
async def get_ledger_account(account_id: int, store: SandboxStore = Depends(get_store)):
    return store.load(LEDGER_ACCOUNTS, account_id)


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_ledger_account(
    request: CreateLedgerAccountRequest,
    store: SandboxStore = Depends(get_store)
):
    """Open a ledger account under a chart of accounts entry"""
    if store.find_one(LEDGER_ACCOUNTS, {"code": request.code}):
        raise HTTPException(status_code=409, detail=f"Ledger account code {request.code} already exists")

    entry = store.find_one(CHART_OF_ACCOUNTS, {"code": request.chart_of_account_code})
    if entry is None:
        raise HTTPException(status_code=400,
                            detail=f"Chart of account {request.chart_of_account_code} not found")
    if entry["accountType"] != request.account_type.value:
        raise HTTPException(status_code=400, detail="Account type must match the chart of account type")

    data = request.to_wire()
    data["balance"] = "0.00"
    data["availableBalance"] = "0.00"
    return store.insert(LEDGER_ACCOUNTS, data)


@router.put("/{account_id}")
async def update_ledger_account(
    account_id: int,
    request: UpdateLedgerAccountRequest,
    store: SandboxStore = Depends(get_store)
):
    store.load(LEDGER_ACCOUNTS, account_id)
    return store.update(LEDGER_ACCOUNTS, account_id, request.to_wire())


@router.delete("/{account_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_ledger_account(account_id: int, store: SandboxStore = Depends(get_store)):
    """Delete a ledger account no GL mapping points to"""
    store.load(LEDGER_ACCOUNTS, account_id)
    if store.count(configuration_table(ConfigKind.GL_MAPPINGS), {"ledgerAccountId": account_id}):
        raise HTTPException(status_code=409, detail="Cannot delete a ledger account used by GL mappings")
    store.delete(LEDGER_ACCOUNTS, account_id)
