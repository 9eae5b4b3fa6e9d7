"""
Products endpoints

Product definitions plus one sub-resource per configuration kind under
/products/{product_id}/{kind}.
"""

from typing import Any, Dict, Optional
from fastapi import APIRouter, HTTPException, Depends, Query, status

from ..products import ConfigKind, ProductCategory, ProductStatus
from ..schemas import CreateProductRequest, UpdateProductRequest, create_model_for, update_model_for
from .dependencies import LEDGER_ACCOUNTS, PRODUCTS, configuration_table, get_store
from .store import SandboxStore


router = APIRouter()

DEFAULT_CURRENCY = "USD"

# Configuration rows that take the product's currency when none is given
_CURRENCY_KINDS = (ConfigKind.FEES, ConfigKind.LIMITS, ConfigKind.PENALTIES)


@router.get("")
async def list_products(
    category: Optional[ProductCategory] = None,
    product_status: Optional[ProductStatus] = Query(None, alias="status"),
    store: SandboxStore = Depends(get_store)
):
    """List all products"""
    return store.find(PRODUCTS, {
        "category": category.value if category else None,
        "status": product_status.value if product_status else None,
    })


@router.get("/{product_id}")
async def get_product(product_id: int, store: SandboxStore = Depends(get_store)):
    """Get product by ID"""
    return store.load(PRODUCTS, product_id)


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_product(request: CreateProductRequest, store: SandboxStore = Depends(get_store)):
    """Create a new product in DRAFT status"""
    if store.find_one(PRODUCTS, {"code": request.code}):
        raise HTTPException(status_code=409, detail=f"Product code {request.code} already exists")
    data = request.to_wire()
    data["status"] = ProductStatus.DRAFT.value
    data["currency"] = request.currency or DEFAULT_CURRENCY
    return store.insert(PRODUCTS, data)


@router.put("/{product_id}")
async def update_product(
    product_id: int,
    request: UpdateProductRequest,
    store: SandboxStore = Depends(get_store)
):
    store.load(PRODUCTS, product_id)
    return store.update(PRODUCTS, product_id, request.to_wire())


@router.delete("/{product_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_product(product_id: int, store: SandboxStore = Depends(get_store)):
    """Delete a product that holds no configuration rows"""
    store.load(PRODUCTS, product_id)
    remaining = sum(
        store.count(configuration_table(kind), {"productId": product_id}) for kind in ConfigKind
    )
    if remaining:
        raise HTTPException(
            status_code=409,
            detail=f"Cannot delete product with {remaining} configuration rows"
        )
    store.delete(PRODUCTS, product_id)


@router.post("/{product_id}/activate")
async def activate_product(product_id: int, store: SandboxStore = Depends(get_store)):
    store.load(PRODUCTS, product_id)
    return store.update(PRODUCTS, product_id, {"status": ProductStatus.ACTIVE.value})


@router.post("/{product_id}/deactivate")
async def deactivate_product(product_id: int, store: SandboxStore = Depends(get_store)):
    store.load(PRODUCTS, product_id)
    return store.update(PRODUCTS, product_id, {"status": ProductStatus.INACTIVE.value})


def _load_row(store: SandboxStore, kind: ConfigKind, product_id: int, row_id: int) -> Dict[str, Any]:
    row = store.load(configuration_table(kind), row_id)
    if row["productId"] != product_id:
        raise HTTPException(status_code=404, detail=f"{kind.label} row {row_id} not found")
    return row


def _row_data(store: SandboxStore, kind: ConfigKind, product: Dict[str, Any],
              data: Dict[str, Any], row_id: Optional[int] = None) -> Dict[str, Any]:
    data["productId"] = product["id"]
    if kind in _CURRENCY_KINDS and not data.get("currency"):
        data["currency"] = product["currency"]

    if kind == ConfigKind.GL_MAPPINGS:
        account = store.find_one(LEDGER_ACCOUNTS, {"id": data["ledgerAccountId"]})
        if account is None:
            raise HTTPException(status_code=400, detail=f"Ledger account {data['ledgerAccountId']} not found")
        duplicates = [
            row for row in store.find(configuration_table(kind),
                                      {"productId": product["id"], "mappingType": data["mappingType"]})
            if row["id"] != row_id
        ]
        if duplicates:
            raise HTTPException(status_code=409, detail=f"{data['mappingType']} mapping already exists")
        data["ledgerAccountCode"] = account["code"]
    return data


def _register_configuration_routes(kind: ConfigKind) -> None:
    table = configuration_table(kind)
    create_model = create_model_for(kind)
    update_model = update_model_for(kind)
    path = f"/{{product_id}}/{kind.path}"

    async def list_rows(product_id: int, store: SandboxStore = Depends(get_store)):
        store.load(PRODUCTS, product_id)
        return store.find(table, {"productId": product_id})

    async def create_row(product_id: int, request: create_model,
                         store: SandboxStore = Depends(get_store)):
        product = store.load(PRODUCTS, product_id)
        return store.insert(table, _row_data(store, kind, product, request.to_wire()))

    async def update_row(product_id: int, row_id: int, request: update_model,
                         store: SandboxStore = Depends(get_store)):
        product = store.load(PRODUCTS, product_id)
        _load_row(store, kind, product_id, row_id)
        return store.update(table, row_id, _row_data(store, kind, product, request.to_wire(), row_id))

    async def delete_row(product_id: int, row_id: int, store: SandboxStore = Depends(get_store)):
        _load_row(store, kind, product_id, row_id)
        store.delete(table, row_id)

    name = kind.name.lower()
    router.add_api_route(path, list_rows, methods=["GET"], name=f"list_{name}")
    router.add_api_route(path, create_row, methods=["POST"], name=f"create_{name}",
                         status_code=status.HTTP_201_CREATED)
    router.add_api_route(f"{path}/{{row_id}}", update_row, methods=["PUT"], name=f"update_{name}")
    router.add_api_route(f"{path}/{{row_id}}", delete_row, methods=["DELETE"], name=f"delete_{name}",
                         status_code=status.HTTP_204_NO_CONTENT)


for _kind in ConfigKind:
    _register_configuration_routes(_kind)
