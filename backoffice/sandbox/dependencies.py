"""
Sandbox dependencies
"""

from fastapi import Request

from ..products import ConfigKind
from .store import SandboxStore


CHART_OF_ACCOUNTS = "chart_of_accounts"
LEDGER_ACCOUNTS = "ledger_accounts"
PRODUCTS = "products"


def configuration_table(kind: ConfigKind) -> str:
    return f"product_{kind.name.lower()}"


# Dependency to get the store of the running app
def get_store(request: Request) -> SandboxStore:
    return request.app.state.store
