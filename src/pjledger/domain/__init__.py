"""Domain layer for pjledger.

Services are imported lazily so that the database layer can import the
entity and engine modules without pulling the services in.
"""

_SERVICES = {
    "AccountService": "pjledger.domain.account",
    "CategoryService": "pjledger.domain.category",
    "TransactionService": "pjledger.domain.transaction",
    "RuleService": "pjledger.domain.rules",
    "StatementImportService": "pjledger.domain.statement_import",
    "SaleService": "pjledger.domain.sale",
    "ReconciliationService": "pjledger.domain.reconciliation",
    "ReportService": "pjledger.domain.report",
}


def __getattr__(name):
    if name in _SERVICES:
        import importlib

        module = importlib.import_module(_SERVICES[name])
        return getattr(module, name)
    raise AttributeError(f"module '{__name__}' has no attribute '{name}'")


__all__ = list(_SERVICES)
