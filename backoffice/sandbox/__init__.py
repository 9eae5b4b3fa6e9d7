"""
Back-Office Sandbox Application Factory

In-memory stand-in for the remote back-office service, serving the same REST
contract under the configured API prefix. Used for local development and
as the target of the end-to-end tests.
"""

import uvicorn
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from ..config import get_config
from .chart_of_accounts import router as chart_of_accounts_router
from .ledger_accounts import router as ledger_accounts_router
from .products import router as products_router
from .store import RecordNotFound, SandboxStore


def _validation_message(exc: RequestValidationError) -> str:
    parts = []
    for error in exc.errors():
        location = ".".join(str(part) for part in error.get("loc", ())[1:])
        parts.append(f"{location}: {error.get('msg')}" if location else str(error.get("msg")))
    return "; ".join(parts) or "Invalid request"


def create_app(store: Optional[SandboxStore] = None, api_prefix: Optional[str] = None) -> FastAPI:
    """Create and configure the sandbox application"""
    prefix = get_config().api_prefix if api_prefix is None else api_prefix

    app = FastAPI(
        title="Back-Office Sandbox API",
        description="In-memory product catalog, chart of accounts and ledger accounts",
        version="1.0.0",
        docs_url="/docs",
        redoc_url="/redoc"
    )
    app.state.store = store or SandboxStore()

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Error bodies carry a single "message" field
    @app.exception_handler(StarletteHTTPException)
    async def http_error(request: Request, exc: StarletteHTTPException):
        return JSONResponse(status_code=exc.status_code, content={"message": str(exc.detail)})

    @app.exception_handler(RequestValidationError)
    async def validation_error(request: Request, exc: RequestValidationError):
        return JSONResponse(status_code=400, content={"message": _validation_message(exc)})

    @app.exception_handler(RecordNotFound)
    async def not_found(request: Request, exc: RecordNotFound):
        return JSONResponse(status_code=404, content={"message": str(exc.args[0])})

    app.include_router(chart_of_accounts_router, prefix=f"{prefix}/chart-of-accounts",
                       tags=["Chart of Accounts"])
    app.include_router(ledger_accounts_router, prefix=f"{prefix}/ledger-accounts",
                       tags=["Ledger Accounts"])
    app.include_router(products_router, prefix=f"{prefix}/products", tags=["Products"])

    @app.get("/health")
    async def health_check():
        """Health check endpoint"""
        return {
            "status": "healthy",
            "service": "backoffice_sandbox",
            "version": "1.0.0"
        }

    return app


app = create_app()


def run_server(host: Optional[str] = None, port: Optional[int] = None, debug: bool = False):
    """Run the sandbox server"""
    settings = get_config()
    uvicorn.run(
        "backoffice.sandbox:app",
        host=host or settings.sandbox_host,
        port=port or settings.sandbox_port,
        reload=debug,
        log_level=settings.log_level.lower()
    )
