"""
Back-Office Service Client Module

Async REST client for the remote back-office service that owns products,
their configuration rows, the chart of accounts and ledger accounts. Every
call either returns decoded records or raises ApiError with the service's
message; nothing is retried. A write answered with an empty body returns
None, the caller refetching when it needs the stored state.
"""

import httpx
import logging
from enum import Enum
from typing import Any, Dict, List, Optional, Type, TypeVar

from .config import get_config
from .errors import ApiError, MalformedResponseError, TransportError
from .ledger import AccountType, ChartOfAccount, LedgerAccount, LedgerAccountStatus
from .products import ConfigKind, Product, ProductCategory, ProductStatus
from .records import ApiRecord
from .schemas import (
    RequestModel, CreateChartOfAccountRequest, UpdateChartOfAccountRequest,
    CreateLedgerAccountRequest, UpdateLedgerAccountRequest,
    CreateProductRequest, UpdateProductRequest
)

logger = logging.getLogger("backoffice.client")

R = TypeVar("R", bound=ApiRecord)


def _error_message(response: httpx.Response) -> str:
    """Extract the service's error message from a failed response"""
    message = f"HTTP {response.status_code}"
    text = response.text
    if not text:
        return message

    try:
        body = response.json()
    except ValueError:
        return text

    if not isinstance(body, dict):
        return text
    if body.get("message"):
        return str(body["message"])
    if body.get("error"):
        return str(body["error"])
    if body.get("errors"):
        errors = body["errors"]
        if isinstance(errors, str):
            return errors
        if isinstance(errors, dict):
            return ", ".join(str(value) for value in errors.values()) or text
        if isinstance(errors, list):
            return ", ".join(str(value) for value in errors) or text
    if body.get("detail"):
        detail = body["detail"]
        if isinstance(detail, list):
            return ", ".join(str(item.get("msg", item)) if isinstance(item, dict) else str(item)
                             for item in detail)
        return str(detail)
    return text


def decode_response(response: httpx.Response) -> Any:
    """
    Decode a service response

    Empty and non-JSON successful responses (204 No Content, plain text)
    decode to None.

    Raises:
        ApiError: If the service returned a non-success status
    """
    content_type = response.headers.get("content-type", "")
    if response.status_code == 204 or (response.is_success and "application/json" not in content_type):
        return None

    if not response.is_success:
        raise ApiError(_error_message(response), status_code=response.status_code)

    if not response.text.strip():
        return None
    try:
        return response.json()
    except ValueError:
        return None


def _params(**values: Any) -> Dict[str, Any]:
    params = {}
    for key, value in values.items():
        if value is None:
            continue
        params[key] = value.value if isinstance(value, Enum) else value
    return params


def _decode(record_class: Type[R], data: Any) -> R:
    """
    Decode one record from a read response

    Raises:
        MalformedResponseError: If the body is empty or does not fit the record
    """
    if data is None:
        raise MalformedResponseError(f"{record_class.__name__} response has no body")
    try:
        return record_class.from_wire(data)
    except (TypeError, ValueError) as e:
        logger.warning(f"Undecodable {record_class.__name__} response: {e}")
        raise MalformedResponseError(str(e)) from e


def _decode_list(record_class: Type[R], data: Any) -> List[R]:
    try:
        return record_class.from_wire_list(data)
    except (TypeError, ValueError) as e:
        logger.warning(f"Undecodable {record_class.__name__} list response: {e}")
        raise MalformedResponseError(str(e)) from e


def _decode_written(record_class: Type[R], data: Any) -> Optional[R]:
    """Decode the echo of a write; an empty success body decodes to None"""
    if data is None:
        return None
    return _decode(record_class, data)


class BackOfficeClient:
    """REST client for the back-office service"""

    def __init__(
        self,
        base_url: Optional[str] = None,
        api_prefix: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        headers: Optional[Dict[str, str]] = None
    ):
        settings = get_config()
        self.base_url = (base_url or settings.api_base_url).rstrip("/")
        self.api_prefix = settings.api_prefix if api_prefix is None else api_prefix
        timeout = settings.api_timeout if timeout is None else timeout

        client_kwargs: Dict[str, Any] = {
            "base_url": f"{self.base_url}{self.api_prefix}",
            "headers": headers or {},
        }
        # No local timeout unless configured; httpx defaults apply
        if timeout is not None:
            client_kwargs["timeout"] = timeout
        if transport is not None:
            client_kwargs["transport"] = transport
        self._client = httpx.AsyncClient(**client_kwargs)

    async def _request(self, method: str, path: str,
                       payload: Optional[RequestModel] = None,
                       params: Optional[Dict[str, Any]] = None) -> Any:
        try:
            response = await self._client.request(
                method,
                path,
                json=payload.to_wire() if payload is not None else None,
                params=params or None,
            )
        except httpx.RequestError as e:
            logger.error(f"{method} {path} failed: {e}")
            raise TransportError(str(e)) from e

        if not response.is_success:
            logger.warning(f"{method} {path} returned {response.status_code}")
        return decode_response(response)

    # Chart of accounts

    async def list_chart_of_accounts(self, is_active: Optional[bool] = None) -> List[ChartOfAccount]:
        data = await self._request("GET", "/chart-of-accounts", params=_params(isActive=is_active))
        return _decode_list(ChartOfAccount, data)

    async def get_chart_of_account(self, account_id: int) -> ChartOfAccount:
        return _decode(ChartOfAccount, await self._request("GET", f"/chart-of-accounts/{account_id}"))

    async def get_chart_of_account_by_code(self, code: str) -> ChartOfAccount:
        data = await self._request("GET", f"/chart-of-accounts/by-code/{code}")
        return _decode(ChartOfAccount, data)

    async def get_chart_of_account_children(self, code: str) -> List[ChartOfAccount]:
        data = await self._request("GET", f"/chart-of-accounts/{code}/children")
        return _decode_list(ChartOfAccount, data)

    async def create_chart_of_account(self, request: CreateChartOfAccountRequest) -> Optional[ChartOfAccount]:
        data = await self._request("POST", "/chart-of-accounts", payload=request)
        return _decode_written(ChartOfAccount, data)

    async def update_chart_of_account(self, account_id: int,
                                      request: UpdateChartOfAccountRequest) -> Optional[ChartOfAccount]:
        data = await self._request("PUT", f"/chart-of-accounts/{account_id}", payload=request)
        return _decode_written(ChartOfAccount, data)

    async def delete_chart_of_account(self, account_id: int) -> None:
        await self._request("DELETE", f"/chart-of-accounts/{account_id}")

    # Ledger accounts

    async def list_ledger_accounts(self, status: Optional[LedgerAccountStatus] = None,
                                   account_type: Optional[AccountType] = None) -> List[LedgerAccount]:
        data = await self._request("GET", "/ledger-accounts",
                                   params=_params(status=status, accountType=account_type))
        return _decode_list(LedgerAccount, data)

    async def get_ledger_account(self, account_id: int) -> LedgerAccount:
        return _decode(LedgerAccount, await self._request("GET", f"/ledger-accounts/{account_id}"))

    async def create_ledger_account(self, request: CreateLedgerAccountRequest) -> Optional[LedgerAccount]:
        data = await self._request("POST", "/ledger-accounts", payload=request)
        return _decode_written(LedgerAccount, data)

    async def update_ledger_account(self, account_id: int,
                                    request: UpdateLedgerAccountRequest) -> Optional[LedgerAccount]:
        data = await self._request("PUT", f"/ledger-accounts/{account_id}", payload=request)
        return _decode_written(LedgerAccount, data)

    async def delete_ledger_account(self, account_id: int) -> None:
        await self._request("DELETE", f"/ledger-accounts/{account_id}")

    # Products

    async def list_products(self, category: Optional[ProductCategory] = None,
                            status: Optional[ProductStatus] = None) -> List[Product]:
        data = await self._request("GET", "/products", params=_params(category=category, status=status))
        return _decode_list(Product, data)

    async def get_product(self, product_id: int) -> Product:
        return _decode(Product, await self._request("GET", f"/products/{product_id}"))

    async def create_product(self, request: CreateProductRequest) -> Optional[Product]:
        return _decode_written(Product, await self._request("POST", "/products", payload=request))

    async def update_product(self, product_id: int, request: UpdateProductRequest) -> Optional[Product]:
        data = await self._request("PUT", f"/products/{product_id}", payload=request)
        return _decode_written(Product, data)

    async def delete_product(self, product_id: int) -> None:
        await self._request("DELETE", f"/products/{product_id}")

    async def activate_product(self, product_id: int) -> Optional[Product]:
        return _decode_written(Product, await self._request("POST", f"/products/{product_id}/activate"))

    async def deactivate_product(self, product_id: int) -> Optional[Product]:
        return _decode_written(Product, await self._request("POST", f"/products/{product_id}/deactivate"))

    # Product configuration rows

    async def list_configurations(self, product_id: int, kind: ConfigKind) -> List[ApiRecord]:
        data = await self._request("GET", f"/products/{product_id}/{kind.path}")
        return _decode_list(kind.record_class, data)

    async def create_configuration(self, product_id: int, kind: ConfigKind,
                                   request: RequestModel) -> Optional[ApiRecord]:
        data = await self._request("POST", f"/products/{product_id}/{kind.path}", payload=request)
        return _decode_written(kind.record_class, data)

    async def update_configuration(self, product_id: int, kind: ConfigKind, row_id: int,
                                   request: RequestModel) -> Optional[ApiRecord]:
        data = await self._request("PUT", f"/products/{product_id}/{kind.path}/{row_id}", payload=request)
        return _decode_written(kind.record_class, data)

    async def delete_configuration(self, product_id: int, kind: ConfigKind, row_id: int) -> None:
        await self._request("DELETE", f"/products/{product_id}/{kind.path}/{row_id}")

    async def close(self):
        """Close the HTTP client"""
        await self._client.aclose()

    async def __aenter__(self) -> "BackOfficeClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.close()
