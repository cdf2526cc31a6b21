"""
Reconciliation Engine: required vs. actual ingredient usage.

Required usage comes from the DailyCalculation snapshots in a window;
actual usage comes from the StockMovement ledger over the same window.

Per product:
    total_actual_out      = exits + transfers to trash + transfers to used + adjustments out
    difference            = total_actual_out - required_quantity
    percentage_difference = difference / required_quantity × 100   (0 when nothing was required)
    status                = match     if |percentage_difference| < tolerance
                            overuse   if difference > 0
                            underuse  otherwise

The opening/closing variant reconstructs stock levels at the window edges
by rolling current levels back through the movements recorded after each
cut-off, then derives consumption from the level change.

Everything here is read-only.
"""
import logging
from collections import defaultdict
from dataclasses import dataclass, field, asdict
from datetime import date, datetime
from decimal import Decimal
from typing import Iterable, Optional
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.orm import Session

from stockroom.core.config import get_settings
from stockroom.core.dates import DateLike, day_range, previous_day_end
from stockroom.core.errors import NotFoundError
from stockroom.models.catalog import Product, Department
from stockroom.models.daily_calculation import DailyCalculation
from stockroom.models.stock import Stock, StockMovement, MovementType, DestinationCategory
from stockroom.services.daily_calculations import DailyCalculationService
from stockroom.services.requirement_aggregator import RequirementLine, merge_requirements

logger = logging.getLogger(__name__)

STATUS_MATCH = "match"
STATUS_OVERUSE = "overuse"
STATUS_UNDERUSE = "underuse"

HUNDRED = Decimal(100)
CENTS = Decimal("0.01")

# Effect of each movement type on the on-hand level
_SIGN = {
    MovementType.ENTRY: 1,
    MovementType.EXIT: -1,
    MovementType.TRANSFER_IN: 1,
    MovementType.TRANSFER_OUT: -1,
    MovementType.ADJUSTMENT_IN: 1,
    MovementType.ADJUSTMENT_OUT: -1,
}


def transfer_destination(movement: StockMovement) -> DestinationCategory:
    """
    Destination category of a transfer movement.

    Rows written with an explicit category use it; older rows fall back to
    matching "trash" / "used" in the free-text reference.
    """
    if movement.destination_category is not None:
        return movement.destination_category
    reference = (movement.reference or "").lower()
    if "trash" in reference:
        return DestinationCategory.TRASH
    if "used" in reference:
        return DestinationCategory.USED
    return DestinationCategory.OTHER


def signed_quantity(movement: StockMovement) -> Decimal:
    """Signed effect of a movement on its department's stock level."""
    quantity = Decimal(movement.quantity)
    if movement.movement_type == MovementType.ADJUSTMENT:
        return quantity
    return quantity * _SIGN[movement.movement_type]


def percentage_difference(difference: Decimal, required: Decimal) -> Decimal:
    if required == 0:
        return Decimal(0)
    return difference / required * HUNDRED


def classify_usage(percentage: Decimal, difference: Decimal, tolerance: Decimal) -> str:
    if abs(percentage) < tolerance:
        return STATUS_MATCH
    if difference > 0:
        return STATUS_OVERUSE
    return STATUS_UNDERUSE


@dataclass
class UsageBuckets:
    """Movement totals for one product (optionally within one department)."""
    total_in: Decimal = Decimal(0)
    total_out: Decimal = Decimal(0)
    transfer_in: Decimal = Decimal(0)
    transfer_to_trash: Decimal = Decimal(0)
    transfer_to_used: Decimal = Decimal(0)
    transfer_out_other: Decimal = Decimal(0)
    adjustment_in: Decimal = Decimal(0)
    adjustment_out: Decimal = Decimal(0)

    def add(self, movement: StockMovement) -> None:
        quantity = Decimal(movement.quantity)
        kind = movement.movement_type

        if kind == MovementType.ENTRY:
            self.total_in += quantity
        elif kind == MovementType.EXIT:
            self.total_out += quantity
        elif kind == MovementType.TRANSFER_IN:
            self.transfer_in += quantity
        elif kind == MovementType.TRANSFER_OUT:
            destination = transfer_destination(movement)
            if destination == DestinationCategory.TRASH:
                self.transfer_to_trash += quantity
            elif destination == DestinationCategory.USED:
                self.transfer_to_used += quantity
            else:
                self.transfer_out_other += quantity
        elif kind == MovementType.ADJUSTMENT:
            if quantity > 0:
                self.adjustment_in += quantity
            else:
                self.adjustment_out += abs(quantity)
        elif kind == MovementType.ADJUSTMENT_IN:
            self.adjustment_in += quantity
        elif kind == MovementType.ADJUSTMENT_OUT:
            self.adjustment_out += quantity

    @property
    def total_actual_out(self) -> Decimal:
        return self.total_out + self.transfer_to_trash + self.transfer_to_used + self.adjustment_out

    def as_dict(self) -> dict:
        data = asdict(self)
        data["total_actual_out"] = self.total_actual_out
        return data


@dataclass
class DepartmentUsage:
    department_id: UUID
    department_name: str
    buckets: UsageBuckets = field(default_factory=UsageBuckets)

    def as_dict(self) -> dict:
        return {
            "department_id": self.department_id,
            "department_name": self.department_name,
            **self.buckets.as_dict(),
        }


@dataclass
class ComparisonRow:
    product_id: UUID
    name: str
    unit: str
    required_quantity: Decimal
    required_cost: Decimal
    buckets: UsageBuckets
    difference: Decimal
    percentage_difference: Decimal
    status: str
    by_department: list[DepartmentUsage]
    mixed_units: bool = False

    def as_dict(self) -> dict:
        return {
            "product_id": self.product_id,
            "name": self.name,
            "unit": self.unit,
            "required_quantity": self.required_quantity,
            "required_cost": self.required_cost,
            **self.buckets.as_dict(),
            "difference": self.difference,
            "percentage_difference": self.percentage_difference.quantize(CENTS),
            "status": self.status,
            "by_department": [usage.as_dict() for usage in self.by_department],
            "mixed_units": self.mixed_units,
        }


@dataclass
class ConsumptionRow:
    product_id: UUID
    name: str
    unit: str
    required_quantity: Decimal
    required_cost: Decimal
    opening_stock: Decimal
    entries: Decimal
    transfers_in: Decimal
    transfers_to_used: Decimal
    transfers_to_trash: Decimal
    closing_stock: Decimal
    consumption: Decimal
    difference: Decimal
    percentage_difference: Decimal
    status: str
    mixed_units: bool = False

    def as_dict(self) -> dict:
        data = asdict(self)
        data["percentage_difference"] = self.percentage_difference.quantize(CENTS)
        return data


@dataclass
class UsageReport:
    start_date: date
    end_date: date
    department_id: Optional[UUID]
    tolerance_percent: Decimal
    rows: list = field(default_factory=list)
    message: Optional[str] = None

    def summary(self) -> dict:
        counts = {STATUS_MATCH: 0, STATUS_OVERUSE: 0, STATUS_UNDERUSE: 0}
        for row in self.rows:
            counts[row.status] += 1
        return {
            "products": len(self.rows),
            **counts,
            "required_cost": sum((row.required_cost for row in self.rows), Decimal(0)),
        }

    def as_dict(self) -> dict:
        data = {
            "start_date": self.start_date,
            "end_date": self.end_date,
            "department_id": self.department_id,
            "tolerance_percent": self.tolerance_percent,
            "items": [row.as_dict() for row in self.rows],
            "summary": self.summary(),
        }
        if self.message:
            data["message"] = self.message
        return data


class ReconciliationService:
    """Read-side reports comparing planned and recorded ingredient usage."""

    def __init__(self, db: Session):
        self.db = db
        self.tolerance = Decimal(str(get_settings().USAGE_TOLERANCE_PERCENT))

    # ==================== REQUIRED SIDE ====================

    def _department(self, department_id: Optional[UUID]) -> Optional[Department]:
        if department_id is None:
            return None
        department = self.db.get(Department, department_id)
        if not department:
            raise NotFoundError("Department", department_id)
        return department

    def _snapshots(self, start: date, end: date, department: Optional[Department]) -> list[DailyCalculation]:
        snapshots = DailyCalculationService(self.db).list_range(start, end)
        if department is None:
            return snapshots
        return [
            snapshot for snapshot in snapshots
            if any(self._entry_department(entry) == department.name for entry in snapshot.calculations)
        ]

    @staticmethod
    def _entry_department(entry) -> str:
        if entry.recipe is not None:
            return entry.recipe.department_name
        return entry.department_name

    def required_usage(
        self, start: date, end: date, department: Optional[Department]
    ) -> list[RequirementLine]:
        """Requirements of every snapshot in range, summed per product."""
        snapshots = self._snapshots(start, end, department)
        rows = [row for snapshot in snapshots for row in snapshot.ingredient_requirements]
        return merge_requirements(rows, by_unit=False)

    # ==================== ACTUAL SIDE ====================

    def _movements(
        self,
        product_ids: Iterable[UUID],
        after: datetime,
        until: Optional[datetime],
        department_ids: Optional[set[UUID]] = None,
        include_after: bool = False,
    ) -> list[StockMovement]:
        query = select(StockMovement).where(StockMovement.product_id.in_(list(product_ids)))
        if include_after:
            query = query.where(StockMovement.created_at >= after)
        else:
            query = query.where(StockMovement.created_at > after)
        if until is not None:
            query = query.where(StockMovement.created_at <= until)
        if department_ids is not None:
            query = query.where(StockMovement.department_id.in_(department_ids))
        return list(self.db.execute(query.order_by(StockMovement.created_at)).scalars().all())

    def _department_names(self, department_ids: Iterable[UUID]) -> dict[UUID, str]:
        ids = set(department_ids)
        if not ids:
            return {}
        return {
            department.id: department.name
            for department in self.db.execute(
                select(Department).where(Department.id.in_(ids))
            ).scalars()
        }

    def _sink_department_ids(self) -> set[UUID]:
        settings = get_settings()
        return set(self.db.execute(
            select(Department.id).where(
                Department.name.in_([settings.TRASH_DEPARTMENT, settings.USED_DEPARTMENT])
            )
        ).scalars())

    # ==================== REPORTS ====================

    def compare_ingredient_usage(
        self,
        start: Optional[DateLike],
        end: Optional[DateLike],
        department_id: Optional[UUID] = None,
    ) -> UsageReport:
        """Required quantities vs. outbound movements per product."""
        start_date, end_date, window_start, window_end = day_range(start, end)
        department = self._department(department_id)
        report = UsageReport(start_date, end_date, department_id, self.tolerance)

        required = self.required_usage(start_date, end_date, department)
        if not required:
            report.message = "No ingredient requirements found for this period"
            return report

        movements = self._movements(
            (line.product_id for line in required),
            window_start,
            window_end,
            department_ids={department.id} if department else None,
            include_after=True,
        )

        totals: dict[UUID, UsageBuckets] = defaultdict(UsageBuckets)
        per_department: dict[UUID, dict[UUID, UsageBuckets]] = defaultdict(lambda: defaultdict(UsageBuckets))
        for movement in movements:
            totals[movement.product_id].add(movement)
            per_department[movement.product_id][movement.department_id].add(movement)

        names = self._department_names(
            department_id
            for product_departments in per_department.values()
            for department_id in product_departments
        )

        for line in required:
            buckets = totals.get(line.product_id, UsageBuckets())
            difference = buckets.total_actual_out - line.required_quantity
            percentage = percentage_difference(difference, line.required_quantity)
            report.rows.append(ComparisonRow(
                product_id=line.product_id,
                name=line.name,
                unit=line.unit,
                required_quantity=line.required_quantity,
                required_cost=line.total_price,
                buckets=buckets,
                difference=difference,
                percentage_difference=percentage,
                status=classify_usage(percentage, difference, self.tolerance),
                by_department=[
                    DepartmentUsage(dept_id, names.get(dept_id, str(dept_id)), dept_buckets)
                    for dept_id, dept_buckets in per_department.get(line.product_id, {}).items()
                ],
                mixed_units=line.mixed_units,
            ))

        logger.info(
            "Ingredient comparison %s..%s department=%s: %d products, %d movements",
            start_date, end_date, department_id, len(report.rows), len(movements),
        )
        return report

    def stock_consumption(
        self,
        start: Optional[DateLike],
        end: Optional[DateLike],
        department_id: Optional[UUID] = None,
    ) -> UsageReport:
        """
        Opening/closing stock reconciliation.

        consumption = max(0, opening + entries + transfers_in - closing
                             - transfers_to_used - transfers_to_trash)

        Levels are summed over active departments only (the Trash/Used sinks
        are excluded) unless a single department is requested.
        """
        start_date, end_date, _, window_end = day_range(start, end)
        department = self._department(department_id)
        report = UsageReport(start_date, end_date, department_id, self.tolerance)

        required = self.required_usage(start_date, end_date, department)
        if not required:
            report.message = "No ingredient requirements found for this period"
            return report

        product_ids = [line.product_id for line in required]
        opening_cutoff = previous_day_end(start_date)

        if department is not None:
            department_ids = {department.id}
        else:
            sinks = self._sink_department_ids()
            active = select(Department.id)
            if sinks:
                active = active.where(Department.id.notin_(sinks))
            department_ids = set(self.db.execute(active).scalars())

        current: dict[UUID, Decimal] = defaultdict(Decimal)
        for stock in self.db.execute(
            select(Stock).where(
                Stock.product_id.in_(product_ids),
                Stock.department_id.in_(department_ids),
            )
        ).scalars():
            current[stock.product_id] += Decimal(stock.quantity)

        since_opening: dict[UUID, Decimal] = defaultdict(Decimal)
        since_closing: dict[UUID, Decimal] = defaultdict(Decimal)
        window: dict[UUID, UsageBuckets] = defaultdict(UsageBuckets)
        for movement in self._movements(product_ids, opening_cutoff, None, department_ids):
            delta = signed_quantity(movement)
            since_opening[movement.product_id] += delta
            if movement.created_at > window_end:
                since_closing[movement.product_id] += delta
            else:
                window[movement.product_id].add(movement)

        for line in required:
            buckets = window.get(line.product_id, UsageBuckets())
            opening = current[line.product_id] - since_opening[line.product_id]
            closing = current[line.product_id] - since_closing[line.product_id]
            consumption = max(
                Decimal(0),
                opening + buckets.total_in + buckets.transfer_in - closing
                - buckets.transfer_to_used - buckets.transfer_to_trash,
            )
            difference = consumption - line.required_quantity
            percentage = percentage_difference(difference, line.required_quantity)
            report.rows.append(ConsumptionRow(
                product_id=line.product_id,
                name=line.name,
                unit=line.unit,
                required_quantity=line.required_quantity,
                required_cost=line.total_price,
                opening_stock=opening,
                entries=buckets.total_in,
                transfers_in=buckets.transfer_in,
                transfers_to_used=buckets.transfer_to_used,
                transfers_to_trash=buckets.transfer_to_trash,
                closing_stock=closing,
                consumption=consumption,
                difference=difference,
                percentage_difference=percentage,
                status=classify_usage(percentage, difference, self.tolerance),
                mixed_units=line.mixed_units,
            ))

        return report

    def department_transfers(
        self,
        start: Optional[DateLike],
        end: Optional[DateLike],
        department_id: Optional[UUID] = None,
    ) -> dict:
        """All movements in a window grouped department → product with usage buckets."""
        start_date, end_date, window_start, window_end = day_range(start, end, require_end=False)
        department = self._department(department_id)

        query = select(StockMovement, Product).join(Product, Product.id == StockMovement.product_id).where(
            StockMovement.created_at >= window_start,
            StockMovement.created_at <= window_end,
        )
        if department is not None:
            query = query.where(StockMovement.department_id == department.id)

        grouped: dict[UUID, dict[UUID, UsageBuckets]] = defaultdict(lambda: defaultdict(UsageBuckets))
        products: dict[UUID, Product] = {}
        for movement, product in self.db.execute(query.order_by(StockMovement.created_at)).all():
            grouped[movement.department_id][movement.product_id].add(movement)
            products[product.id] = product

        names = self._department_names(grouped.keys())
        departments = []
        for dept_id, by_product in grouped.items():
            departments.append({
                "department_id": dept_id,
                "department_name": names.get(dept_id, str(dept_id)),
                "products": [
                    {
                        "product_id": product_id,
                        "product_name": products[product_id].product_name,
                        "unit": products[product_id].unit,
                        **buckets.as_dict(),
                    }
                    for product_id, buckets in by_product.items()
                ],
            })
        departments.sort(key=lambda d: d["department_name"])

        return {
            "start_date": start_date,
            "end_date": end_date,
            "department_id": department_id,
            "departments": departments,
        }
