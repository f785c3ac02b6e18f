"""Mapper functions to convert between domain models and SQLAlchemy models.

This layer isolates the conversion logic, including the flattening of the
classification variant into nullable columns.
"""

from decimal import Decimal

from pjledger.domain import entities as domain
from pjledger.domain.settlement import parse_settlement_rule
from pjledger.database.models import (
    Account as ORMAccount,
    Category as ORMCategory,
    CategorizationRule as ORMRule,
    Sale as ORMSale,
    SaleLeg as ORMSaleLeg,
    SettlementParcel as ORMParcel,
    Transaction as ORMTransaction,
)


def account_to_domain(orm_account: ORMAccount) -> domain.Account:
    """Convert SQLAlchemy Account model to domain Account entity."""
    return domain.Account(
        id=orm_account.id,
        client_id=orm_account.client_id,
        name=orm_account.name,
        bank_name=orm_account.bank_name,
        created_at=orm_account.created_at,
    )


def category_to_domain(orm_category: ORMCategory) -> domain.CategoryDefinition:
    """Convert SQLAlchemy Category model to a domain CategoryDefinition."""
    return domain.CategoryDefinition(
        id=str(orm_category.id),
        label=orm_category.label,
        path=orm_category.path,
        level=orm_category.level,
        sort_order=orm_category.sort_order,
        parent_path=orm_category.parent_path,
        accepts_postings=orm_category.accepts_postings,
        ledger_group=domain.LedgerGroup(orm_category.ledger_group),
    )


def classification_to_domain(orm_transaction: ORMTransaction) -> domain.Classification:
    """Rebuild the classification variant from its columns."""
    kind = orm_transaction.classification_kind
    if kind == "rule":
        return domain.RuleClassification(
            rule_id=orm_transaction.rule_id,
            ledger_group=domain.LedgerGroup(orm_transaction.ledger_group),
            category_id=orm_transaction.category_id,
            category_path=orm_transaction.category_path,
            subcategory=orm_transaction.subcategory,
        )
    if kind == "manual":
        return domain.ManualClassification(
            ledger_group=domain.LedgerGroup(orm_transaction.ledger_group),
            category_id=orm_transaction.category_id,
            category_path=orm_transaction.category_path,
            subcategory=orm_transaction.subcategory,
        )
    return domain.UNCLASSIFIED


def classification_to_columns(classification: domain.Classification) -> dict:
    """Flatten a classification variant into transaction column values."""
    if isinstance(classification, domain.Unclassified):
        return {
            "classification_kind": "none",
            "rule_id": None,
            "ledger_group": None,
            "category_id": None,
            "category_path": None,
            "subcategory": None,
        }
    return {
        "classification_kind": classification.kind,
        "rule_id": getattr(classification, "rule_id", None),
        "ledger_group": classification.ledger_group.value,
        "category_id": classification.category_id,
        "category_path": classification.category_path,
        "subcategory": classification.subcategory,
    }


def transaction_to_domain(orm_transaction: ORMTransaction) -> domain.Transaction:
    """Convert SQLAlchemy Transaction model to domain Transaction entity."""
    return domain.Transaction(
        id=orm_transaction.id,
        account_id=orm_transaction.account_id,
        date=orm_transaction.date,
        amount=Decimal(orm_transaction.amount),
        description=orm_transaction.description or "",
        external_id=orm_transaction.external_id,
        source_hash=orm_transaction.source_hash,
        legacy_category=orm_transaction.legacy_category,
        legacy_item=orm_transaction.legacy_item,
        classification=classification_to_domain(orm_transaction),
        reconciled=orm_transaction.reconciled,
        imported_at=orm_transaction.imported_at,
    )


def rule_to_domain(orm_rule: ORMRule) -> domain.CategorizationRule:
    """Convert SQLAlchemy CategorizationRule model to domain entity."""
    return domain.CategorizationRule(
        id=orm_rule.id,
        client_id=orm_rule.client_id,
        pattern=orm_rule.pattern,
        match_type=domain.MatchType(orm_rule.match_type),
        ledger_group=domain.LedgerGroup(orm_rule.ledger_group),
        category_path=orm_rule.category_path,
        subcategory=orm_rule.subcategory,
        enabled=orm_rule.enabled,
    )


def parcel_to_domain(orm_parcel: ORMParcel) -> domain.SettlementParcel:
    """Convert SQLAlchemy SettlementParcel model to domain entity."""
    return domain.SettlementParcel(
        n=orm_parcel.n,
        due_date=orm_parcel.due_date,
        expected_amount=Decimal(orm_parcel.expected_amount),
        received_tx_id=orm_parcel.received_tx_id,
        received_at=orm_parcel.received_at,
    )


def sale_leg_to_domain(orm_leg: ORMSaleLeg) -> domain.SaleLeg:
    """Convert SQLAlchemy SaleLeg model to domain entity."""
    return domain.SaleLeg(
        id=orm_leg.id,
        sale_id=orm_leg.sale_id,
        method=orm_leg.method,
        settlement_rule=parse_settlement_rule(orm_leg.settlement_rule),
        installments=orm_leg.installments,
        gross_amount=Decimal(orm_leg.gross_amount),
        fees=Decimal(orm_leg.fees),
        net_amount=Decimal(orm_leg.net_amount),
        settlement_plan=tuple(parcel_to_domain(p) for p in orm_leg.parcels),
        reconciliation_state=domain.ReconciliationState(orm_leg.reconciliation_state),
        notes=orm_leg.notes,
    )


def sale_to_domain(orm_sale: ORMSale) -> domain.Sale:
    """Convert SQLAlchemy Sale model to domain entity with its legs."""
    return domain.Sale(
        id=orm_sale.id,
        client_id=orm_sale.client_id,
        date=orm_sale.date,
        gross_amount=Decimal(orm_sale.gross_amount),
        net_amount=Decimal(orm_sale.net_amount),
        invoice_number=orm_sale.invoice_number,
        customer=orm_sale.customer,
        channel=orm_sale.channel,
        legs=tuple(sale_leg_to_domain(leg) for leg in orm_sale.legs),
    )
