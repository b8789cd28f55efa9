"""
Basis Aggregator

Sums a month's raw basis entries per payee. Entries of the same type for the
same payee are additive; the agency revenue snapshot is a singleton and is
passed through as-is.
"""
import logging
from collections import defaultdict
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Dict, List, Optional, Set
from uuid import UUID

from agency_console.models.payout import PayoutCategory
from agency_console.schemas.basis import (
    AffiliateAssignment,
    AgencyRevenueSnapshot,
    BasisSource,
    Payee,
    PayoutInputs,
    SalesEntry,
)
from agency_console.services.payouts.compensation import CompensationResolver, SalesBasis, percent_of


logger = logging.getLogger(__name__)

ZERO = Decimal("0")


@dataclass
class PayeeBasis:
    """Per-payee totals for one month."""
    sales: SalesBasis = field(default_factory=SalesBasis)
    bonus_total_eur: Decimal = ZERO
    fine_total_eur: Decimal = ZERO
    hours: Decimal = ZERO
    hourly_eur: Decimal = ZERO
    hourly_entries: int = 0


@dataclass
class ModelNet:
    """A model's net revenue for the month; `amount` None means missing."""
    amount: Optional[Decimal]
    has_row: bool

    @property
    def missing(self) -> bool:
        return self.has_row and self.amount is None


class BasisAggregator:
    """Indexes one month's PayoutInputs by payee."""

    def __init__(self, inputs: PayoutInputs):
        self.inputs = inputs
        self.payees: Dict[UUID, Payee] = {p.id: p for p in inputs.payees}
        self._sales: Dict[UUID, List[SalesEntry]] = defaultdict(list)
        self._bonus: Dict[UUID, Decimal] = defaultdict(lambda: ZERO)
        self._fine: Dict[UUID, Decimal] = defaultdict(lambda: ZERO)
        self._hours: Dict[UUID, Decimal] = defaultdict(lambda: ZERO)
        self._hourly_eur: Dict[UUID, Decimal] = defaultdict(lambda: ZERO)
        self._hourly_count: Dict[UUID, int] = defaultdict(int)
        self.skipped_entries = 0

        for entry in inputs.sales:
            if self._known(entry.payee_id, "sales"):
                self._sales[entry.payee_id].append(entry)
        for entry in inputs.bonuses:
            if self._known(entry.payee_id, "bonus"):
                self._bonus[entry.payee_id] += entry.amount_eur
        for entry in inputs.fines:
            if self._known(entry.payee_id, "fine"):
                self._fine[entry.payee_id] += abs(entry.amount_eur)
        for entry in inputs.hourly:
            if self._known(entry.payee_id, "hourly"):
                self._hours[entry.payee_id] += entry.hours
                self._hourly_eur[entry.payee_id] += entry.hours * entry.rate_eur
                self._hourly_count[entry.payee_id] += 1

        self._model_nets = self._sum_model_revenue()

    def _known(self, payee_id: UUID, basis_type: str) -> bool:
        if payee_id in self.payees:
            return True
        logger.debug("Skipping %s entry for unknown payee %s", basis_type, payee_id)
        self.skipped_entries += 1
        return False

    def _sum_model_revenue(self) -> Dict[UUID, ModelNet]:
        # Several rows for one model are summed; the net is missing only
        # when no row carries a figure.
        nets: Dict[UUID, ModelNet] = {}
        for row in self.inputs.model_revenues:
            current = nets.get(row.model_id, ModelNet(amount=None, has_row=True))
            if row.net_revenue_usd is not None:
                current = ModelNet(amount=(current.amount or ZERO) + row.net_revenue_usd, has_row=True)
            nets[row.model_id] = current
        return nets

    @property
    def agency_revenue(self) -> Optional[AgencyRevenueSnapshot]:
        return self.inputs.agency_revenue

    def basis_for(self, payee: Payee, category: PayoutCategory) -> PayeeBasis:
        """Bonus and fine totals for anyone; sales for chatters, hours for VAs."""
        basis = PayeeBasis(
            bonus_total_eur=self._bonus.get(payee.id, ZERO),
            fine_total_eur=self._fine.get(payee.id, ZERO),
        )

        if category == PayoutCategory.CHATTER:
            basis.sales = self.sales_basis(payee)

        if self._hourly_count.get(payee.id):
            if category == PayoutCategory.VA:
                basis.hours = self._hours[payee.id]
                basis.hourly_eur = self._hourly_eur[payee.id]
                basis.hourly_entries = self._hourly_count[payee.id]
            else:
                logger.debug("Ignoring hourly entries for %s (%s)", payee.name, category.value)

        return basis

    def sales_basis(self, payee: Payee) -> SalesBasis:
        """Sum of gross_usd * payout_pct / 100, split by source."""
        default_pct = CompensationResolver.default_sales_pct(payee.compensation)
        sales = SalesBasis()
        for entry in self._sales.get(payee.id, []):
            pct = entry.payout_pct if entry.payout_pct is not None else default_pct
            commission = percent_of(entry.gross_usd, pct) if pct is not None else ZERO
            if entry.source == BasisSource.WEBAPP:
                sales.webapp_usd += commission
            else:
                sales.manual_usd += commission
            sales.commission_usd += commission
            sales.entries += 1
        return sales

    def model_net(self, model_id: UUID) -> ModelNet:
        """A model with no revenue row has a zero basis, not a missing one."""
        return self._model_nets.get(model_id, ModelNet(amount=ZERO, has_row=False))

    def assignments_for(self, affiliate_id: UUID) -> List[AffiliateAssignment]:
        month_id = self.inputs.month_id
        return [
            a for a in self.inputs.affiliate_assignments
            if a.affiliate_id == affiliate_id and a.covers(month_id)
        ]

    def assigned_model_ids(self) -> Set[UUID]:
        month_id = self.inputs.month_id
        return {
            model_id
            for a in self.inputs.affiliate_assignments if a.covers(month_id)
            for model_id in a.model_ids
        }
