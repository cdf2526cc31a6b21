"""
Stock Ledger Service - mutates per-department stock levels.

Every operation follows the same order:
1. Resolve product and departments, validate quantities (no writes yet)
2. Mutate the Stock row(s) and commit
3. Write the matching StockMovement(s) and ActivityLog entries, best-effort

Decrements use a conditional UPDATE (`... WHERE quantity >= :requested`),
so two requests racing on the same row cannot drive it negative; the loser
gets InsufficientStockError.
"""
import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import Optional

from sqlalchemy import select, update, func
from sqlalchemy.orm import Session

from stockroom.core.config import get_settings
from stockroom.core.errors import ValidationError, NotFoundError, InsufficientStockError
from stockroom.models.activity_log import EntityType
from stockroom.models.catalog import Product, Department
from stockroom.models.stock import (
    Stock,
    MovementType,
    DestinationCategory,
    RelatedDocumentType,
)
from stockroom.models.user import User
from stockroom.services.audit import log_activity, log_stock_movement
from stockroom.services.catalog import (
    find_product_by_name,
    find_department_by_name,
    get_or_create_department,
)

logger = logging.getLogger(__name__)


@dataclass
class AddResult:
    stock: Stock
    created: bool
    quantity_added: Decimal


@dataclass
class TransferResult:
    product_name: str
    from_department: str
    to_department: str
    quantity: Decimal
    source_quantity: Decimal
    destination_quantity: Decimal
    reference: str
    destination_category: DestinationCategory


@dataclass
class AdjustmentResult:
    stock: Stock
    previous_quantity: Decimal
    new_quantity: Decimal
    delta: Decimal
    movement_type: Optional[MovementType]


def _positive(quantity: Decimal, field: str = "quantity") -> Decimal:
    if quantity is None:
        raise ValidationError(f"{field} is required")
    quantity = Decimal(quantity)
    if quantity <= 0:
        raise ValidationError(f"{field} must be greater than 0")
    return quantity


class StockLedgerService:
    """Add, transfer and adjust stock with matching movement and audit records."""

    def __init__(self, db: Session, user: User):
        self.db = db
        self.user = user
        self.settings = get_settings()

    # ==================== LOOKUPS ====================

    def _find_stock(self, product: Product, department: Department) -> Optional[Stock]:
        return self.db.execute(
            select(Stock).where(
                Stock.product_id == product.id,
                Stock.department_id == department.id,
            )
        ).scalar_one_or_none()

    def _categorize(self, department_name: str) -> DestinationCategory:
        if department_name == self.settings.TRASH_DEPARTMENT:
            return DestinationCategory.TRASH
        if department_name == self.settings.USED_DEPARTMENT:
            return DestinationCategory.USED
        return DestinationCategory.OTHER

    # ==================== ADD ====================

    def add_stock(
        self,
        product_name: str,
        department_name: str,
        quantity: Decimal,
        reference: Optional[str] = None,
    ) -> AddResult:
        """Increase a (product, department) row, creating it on first receipt."""
        quantity = _positive(quantity)

        product = find_product_by_name(self.db, product_name)
        if not product:
            raise NotFoundError("Product", product_name)
        department = find_department_by_name(self.db, department_name)
        if not department:
            raise NotFoundError("Department", department_name)

        stock = self._find_stock(product, department)
        created = stock is None
        if created:
            stock = Stock(product_id=product.id, department_id=department.id, quantity=quantity)
            self.db.add(stock)
            previous = Decimal(0)
        else:
            previous = Decimal(stock.quantity)
            self.db.execute(
                update(Stock)
                .where(Stock.id == stock.id)
                .values(quantity=Stock.quantity + quantity, updated_at=func.now())
                .execution_options(synchronize_session=False)
            )
        self.db.commit()
        self.db.refresh(stock)

        logger.info(
            "Stock entry: %s %s into %s by %s",
            quantity, product.product_name, department.name, self.user.id,
        )

        log_stock_movement(
            self.db,
            product_id=product.id,
            department_id=department.id,
            quantity=quantity,
            movement_type=MovementType.ENTRY,
            reference=reference or f"Stock added to {department.name}",
            related_document_id=stock.id,
            related_document_type=RelatedDocumentType.STOCK,
            user_id=self.user.id,
        )
        log_activity(
            self.db,
            "create" if created else "update",
            EntityType.STOCK,
            stock.id,
            {
                "product": product.product_name,
                "department": department.name,
                "quantity": {"old": previous, "new": stock.quantity},
                "added": quantity,
            },
            self.user.id,
        )

        return AddResult(stock=stock, created=created, quantity_added=quantity)

    # ==================== TRANSFER ====================

    def transfer(
        self,
        product_name: str,
        from_department: str,
        to_department: str,
        quantity: Decimal,
        reference: Optional[str] = None,
    ) -> TransferResult:
        """Move stock between two existing departments."""
        quantity = _positive(quantity)

        product = find_product_by_name(self.db, product_name)
        source = find_department_by_name(self.db, from_department)
        destination = find_department_by_name(self.db, to_department)
        if not product or not source or not destination:
            raise ValidationError("Invalid department or product name")
        if source.id == destination.id:
            raise ValidationError("Source and destination departments must differ")

        return self._move(
            product,
            source,
            destination,
            quantity,
            reference or f"Transfer from {source.name} to {destination.name}",
            self._categorize(destination.name),
        )

    def transfer_to_trash(
        self,
        product_name: str,
        department_name: str,
        quantity: Decimal,
        reason: Optional[str] = None,
    ) -> TransferResult:
        """Dispose of stock into the Trash sink."""
        return self._transfer_to_sink(
            product_name,
            department_name,
            quantity,
            self.settings.TRASH_DEPARTMENT,
            DestinationCategory.TRASH,
            f"Transfer to trash from {department_name}" + (f": {reason}" if reason else ""),
        )

    def transfer_to_used(
        self,
        product_name: str,
        department_name: str,
        quantity: Decimal,
        reason: Optional[str] = None,
    ) -> TransferResult:
        """Record consumption by moving stock into the Used sink."""
        return self._transfer_to_sink(
            product_name,
            department_name,
            quantity,
            self.settings.USED_DEPARTMENT,
            DestinationCategory.USED,
            f"Transfer to used from {department_name}" + (f": {reason}" if reason else ""),
        )

    def _transfer_to_sink(
        self,
        product_name: str,
        department_name: str,
        quantity: Decimal,
        sink_name: str,
        category: DestinationCategory,
        reference: str,
    ) -> TransferResult:
        quantity = _positive(quantity)

        product = find_product_by_name(self.db, product_name)
        source = find_department_by_name(self.db, department_name)
        if not product or not source:
            raise ValidationError("Invalid department or product name")
        if source.name == sink_name:
            raise ValidationError(f"Stock is already in {sink_name}")

        # Refuse before creating the sink so a rejected request writes nothing
        self._check_available(product, source, quantity)
        sink = get_or_create_department(self.db, sink_name, f"{sink_name} sink department")

        return self._move(product, source, sink, quantity, reference, category)

    def _check_available(self, product: Product, department: Department, quantity: Decimal) -> Stock:
        stock = self._find_stock(product, department)
        available = Decimal(stock.quantity) if stock else Decimal(0)
        if stock is None or available < quantity:
            raise InsufficientStockError(product.product_name, department.name, available, quantity)
        return stock

    def _move(
        self,
        product: Product,
        source: Department,
        destination: Department,
        quantity: Decimal,
        reference: str,
        category: DestinationCategory,
    ) -> TransferResult:
        source_stock = self._check_available(product, source, quantity)
        source_before = Decimal(source_stock.quantity)

        decremented = self.db.execute(
            update(Stock)
            .where(Stock.id == source_stock.id, Stock.quantity >= quantity)
            .values(quantity=Stock.quantity - quantity, updated_at=func.now())
            .execution_options(synchronize_session=False)
        )
        if decremented.rowcount == 0:
            # Another request consumed the stock between check and update
            self.db.rollback()
            self.db.refresh(source_stock)
            raise InsufficientStockError(
                product.product_name, source.name, Decimal(source_stock.quantity), quantity,
            )

        destination_stock = self._find_stock(product, destination)
        if destination_stock is None:
            destination_before = Decimal(0)
            destination_stock = Stock(product_id=product.id, department_id=destination.id, quantity=quantity)
            self.db.add(destination_stock)
        else:
            destination_before = Decimal(destination_stock.quantity)
            self.db.execute(
                update(Stock)
                .where(Stock.id == destination_stock.id)
                .values(quantity=Stock.quantity + quantity, updated_at=func.now())
                .execution_options(synchronize_session=False)
            )
        self.db.commit()
        self.db.refresh(source_stock)
        self.db.refresh(destination_stock)

        logger.info(
            "Stock transfer: %s %s from %s to %s (%s) by %s",
            quantity, product.product_name, source.name, destination.name, category.value, self.user.id,
        )

        for department, stock, movement_type in (
            (source, source_stock, MovementType.TRANSFER_OUT),
            (destination, destination_stock, MovementType.TRANSFER_IN),
        ):
            log_stock_movement(
                self.db,
                product_id=product.id,
                department_id=department.id,
                quantity=quantity,
                movement_type=movement_type,
                destination_category=category,
                reference=reference,
                related_document_id=stock.id,
                related_document_type=RelatedDocumentType.TRANSFER,
                user_id=self.user.id,
            )

        changes = {
            "product": product.product_name,
            "from": source.name,
            "to": destination.name,
            "quantity": quantity,
            "reference": reference,
        }
        log_activity(
            self.db, "transfer_out", EntityType.STOCK, source_stock.id,
            {**changes, "old": source_before, "new": source_stock.quantity},
            self.user.id,
        )
        log_activity(
            self.db, "transfer_in", EntityType.STOCK, destination_stock.id,
            {**changes, "old": destination_before, "new": destination_stock.quantity},
            self.user.id,
        )

        return TransferResult(
            product_name=product.product_name,
            from_department=source.name,
            to_department=destination.name,
            quantity=quantity,
            source_quantity=Decimal(source_stock.quantity),
            destination_quantity=Decimal(destination_stock.quantity),
            reference=reference,
            destination_category=category,
        )

    # ==================== ADJUST ====================

    def adjust(
        self,
        product_name: str,
        department_name: str,
        new_quantity: Decimal,
        reason: str,
    ) -> AdjustmentResult:
        """Set a row to an explicit counted quantity."""
        if new_quantity is None:
            raise ValidationError("quantity is required")
        new_quantity = Decimal(new_quantity)
        if new_quantity < 0:
            raise ValidationError("quantity must not be negative")
        if not reason or not reason.strip():
            raise ValidationError("reason is required for an adjustment")

        product = find_product_by_name(self.db, product_name)
        if not product:
            raise NotFoundError("Product", product_name)
        department = find_department_by_name(self.db, department_name)
        if not department:
            raise NotFoundError("Department", department_name)

        stock = self._find_stock(product, department)
        previous = Decimal(stock.quantity) if stock else Decimal(0)
        delta = new_quantity - previous

        if stock is None:
            stock = Stock(product_id=product.id, department_id=department.id, quantity=new_quantity)
            self.db.add(stock)
        else:
            stock.quantity = new_quantity
        self.db.commit()
        self.db.refresh(stock)

        if delta == 0:
            return AdjustmentResult(stock, previous, new_quantity, delta, None)

        movement_type = MovementType.ADJUSTMENT_IN if delta > 0 else MovementType.ADJUSTMENT_OUT
        logger.info(
            "Stock adjustment: %s %s in %s from %s to %s by %s",
            product.product_name, movement_type.value, department.name, previous, new_quantity, self.user.id,
        )

        log_stock_movement(
            self.db,
            product_id=product.id,
            department_id=department.id,
            quantity=abs(delta),
            movement_type=movement_type,
            reference=reason.strip(),
            related_document_id=stock.id,
            related_document_type=RelatedDocumentType.ADJUSTMENT,
            user_id=self.user.id,
        )
        log_activity(
            self.db,
            "adjust",
            EntityType.STOCK,
            stock.id,
            {
                "product": product.product_name,
                "department": department.name,
                "quantity": {"old": previous, "new": new_quantity},
                "reason": reason.strip(),
            },
            self.user.id,
        )

        return AdjustmentResult(stock, previous, new_quantity, delta, movement_type)
