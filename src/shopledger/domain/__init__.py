"""Domain layer for shopledger application."""

_SERVICES = {
    "AccountService": "shopledger.domain.account",
    "BalanceService": "shopledger.domain.balance",
    "DashboardService": "shopledger.domain.dashboard",
    "LedgerService": "shopledger.domain.ledger",
    "ShopService": "shopledger.domain.shop",
    "TenancyGuard": "shopledger.domain.tenancy",
}

__all__ = list(_SERVICES)


# Services import the database layer, which imports domain entities, so
# services are resolved lazily
def __getattr__(name):
    if name in _SERVICES:
        import importlib

        return getattr(importlib.import_module(_SERVICES[name]), name)
    raise AttributeError(f"module '{__name__}' has no attribute '{name}'")
