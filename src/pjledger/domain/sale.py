"""Sale domain service."""

import logging
from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Optional, Sequence

from pjledger.database.base import Database
from pjledger.domain.entities import CENT, ZERO, Sale, SaleLeg
from pjledger.domain.errors import (
    ConflictError,
    NotFoundError,
    ValidationError,
    sale_leg_not_found,
)
from pjledger.domain.settlement import generate_settlement_plan, parse_settlement_rule

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LegInput:
    """Payment leg of a sale as entered."""

    method: str
    gross_amount: Decimal
    fees: Decimal = ZERO
    settlement_rule: Optional[str] = None
    installments: int = 1


class SaleService:
    """Service for recording sales and their settlement plans."""

    def __init__(self, db: Database):
        """Initialize sale service.

        Args:
            db: Database instance
        """
        self.db = db

    def build_leg(self, sale_date: date, leg: LegInput) -> SaleLeg:
        """Compute a leg's net amount and settlement plan.

        Raises:
            ValidationError: If amounts are negative or fees exceed the gross amount
        """
        gross = Decimal(leg.gross_amount).quantize(CENT)
        fees = Decimal(leg.fees or ZERO).quantize(CENT)
        if gross <= 0:
            raise ValidationError(f"Leg '{leg.method}': gross amount must be positive")
        if fees < 0 or fees > gross:
            raise ValidationError(
                f"Leg '{leg.method}': fees must be between 0 and the gross amount"
            )
        if leg.installments < 1:
            raise ValidationError(f"Leg '{leg.method}': installments must be at least 1")

        rule = parse_settlement_rule(leg.settlement_rule)
        net = gross - fees
        return SaleLeg(
            id=None,
            sale_id=None,
            method=leg.method,
            settlement_rule=rule,
            installments=leg.installments,
            gross_amount=gross,
            fees=fees,
            net_amount=net,
            settlement_plan=tuple(
                generate_settlement_plan(sale_date, rule, leg.installments, net)
            ),
        )

    def create_sale(
        self,
        client_id: str,
        sale_date: date,
        legs: Sequence[LegInput],
        invoice_number: Optional[str] = None,
        customer: Optional[str] = None,
        channel: Optional[str] = None,
    ) -> Sale:
        """Record a sale with one settlement plan per payment leg.

        Args:
            client_id: Client making the sale
            sale_date: Date of the sale
            legs: Payment legs
            invoice_number: Invoice number; together with the date it identifies the sale
            customer: Customer name
            channel: Sales channel

        Returns:
            The stored sale

        Raises:
            ValidationError: If there are no legs or a leg is invalid
            ConflictError: If a sale with the same invoice number and date exists
        """
        if not legs:
            raise ValidationError("A sale needs at least one payment leg")

        if invoice_number:
            existing = self.db.find_sale(client_id, invoice_number, sale_date)
            if existing is not None:
                raise ConflictError(
                    f"Sale with invoice '{invoice_number}' on {sale_date.isoformat()} "
                    f"already exists (ID: {existing.id})"
                )

        built = tuple(self.build_leg(sale_date, leg) for leg in legs)
        sale = Sale(
            id=None,
            client_id=client_id,
            date=sale_date,
            gross_amount=sum((leg.gross_amount for leg in built), ZERO),
            net_amount=sum((leg.net_amount for leg in built), ZERO),
            invoice_number=invoice_number,
            customer=customer,
            channel=channel,
            legs=built,
        )
        sale_id = self.db.create_sale(sale)
        logger.info("Recorded sale %s with %d legs", sale_id, len(built))
        return self.db.get_sale(sale_id)

    def get_sale(self, sale_id: int) -> Optional[Sale]:
        """Get sale by ID."""
        return self.db.get_sale(sale_id)

    def get_leg(self, leg_id: int) -> SaleLeg:
        """Get a sale leg.

        Raises:
            NotFoundError: If the leg doesn't exist
        """
        leg = self.db.get_sale_leg(leg_id)
        if leg is None:
            raise NotFoundError(sale_leg_not_found(leg_id))
        return leg

    def list_sales(
        self,
        client_id: str,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
    ) -> list[Sale]:
        """List a client's sales."""
        return self.db.list_sales(client_id, start_date=start_date, end_date=end_date)
