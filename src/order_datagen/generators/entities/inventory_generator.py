"""
Inventory movement generation.

Maintains a running per-product stock ledger seeded from each product's
stock plus a fixed buffer. Order fulfilment decrements it; restocks,
positive adjustments and returns increment it. Stock never goes below zero.
"""

import logging
import math

from order_datagen.config.models import GeneratorConfig, ScenarioProfile
from order_datagen.generators.entities.base_generator import BaseGenerator
from order_datagen.generators.reference_data import RESTOCK_THRESHOLD, STOCK_BUFFER
from order_datagen.shared.models import (
    InventoryMovement,
    MovementType,
    Order,
    OrderStatus,
    Product,
    Return,
)

logger = logging.getLogger(__name__)


class InventoryGenerator(BaseGenerator[InventoryMovement]):
    """Generates the stock ledger for products touched by orders."""

    entity_name = "inventory"

    def __init__(
        self,
        config: GeneratorConfig,
        scenario: ScenarioProfile,
        products: list[Product],
        orders: list[Order],
        seed: int | None = None,
    ):
        super().__init__(config, scenario, seed)
        self.products = products
        self.orders = orders
        self._orders_by_id = {order.id: order for order in orders}
        self._stock = {product.id: product.stock + STOCK_BUFFER for product in products}

    def generate(self, count: int) -> list[InventoryMovement]:
        """
        Fulfilment, restock and adjustment movements sorted by time.

        Args:
            count: Maximum number of movements to return

        Returns:
            The earliest ``count`` movements
        """
        movements = self._fulfilment_movements()
        movements.extend(self._restock_movements())
        movements.extend(self._adjustment_movements())
        movements.sort(key=lambda m: m.created_at)

        if len(movements) > count:
            logger.debug(f"Truncating {len(movements)} inventory movements to {count}")
        return movements[:count]

    def add_return_movements(self, returns: list[Return]) -> list[InventoryMovement]:
        """
        Put back 50-100% of each returned order's item quantities.

        Raises:
            KeyError: If a return references an unknown order
        """
        movements = []
        for record in returns:
            order = self._orders_by_id[record.order_id]
            for item in order.items:
                quantity = math.floor(item.quantity * self.sampler.uniform(0.5, 1))
                movements.append(
                    self._move(
                        item.product_id,
                        MovementType.RETURN,
                        quantity,
                        reference_id=order.id,
                        reference_type="return",
                        created_at=record.return_date,
                        created_by="returns_dept",
                        notes=f"Return from order {order.id[:8]}",
                    )
                )
        return movements

    def stock_levels(self) -> dict[str, int]:
        return dict(self._stock)

    # ------------------------------------------------------------------
    # Movement kinds
    # ------------------------------------------------------------------

    def _fulfilment_movements(self) -> list[InventoryMovement]:
        movements = []
        for order in self.orders:
            if order.status == OrderStatus.CANCELLED:
                continue
            for item in order.items:
                movements.append(
                    self._move(
                        item.product_id,
                        MovementType.ORDER_FULFILLMENT,
                        -item.quantity,
                        reference_id=order.id,
                        reference_type="order",
                        created_at=order.order_date,
                        created_by="system",
                        notes=f"Order {order.id[:8]} - {item.product_name}",
                    )
                )
        return movements

    def _restock_movements(self) -> list[InventoryMovement]:
        movements = []
        for product in self.products:
            if self._stock.get(product.id, 0) >= RESTOCK_THRESHOLD:
                continue
            for _ in range(self.sampler.uniform_int(1, 4)):
                movements.append(
                    self._move(
                        product.id,
                        MovementType.RESTOCK,
                        self.sampler.uniform_int(100, 500),
                        reference_type="manual",
                        created_at=self.random_date_in_range(),
                        created_by="warehouse_manager",
                        notes=f"Restock - PO#{math.floor(self.sampler.random() * 100_000)}",
                    )
                )
        return movements

    def _adjustment_movements(self) -> list[InventoryMovement]:
        rate = self.scenario.anomaly_rate * 0.5
        movements = []
        for product in self.products:
            if self.sampler.random() >= rate:
                continue
            positive = self.sampler.random() > 0.5
            quantity = self.sampler.uniform_int(1, 20)
            movements.append(
                self._move(
                    product.id,
                    MovementType.ADJUSTMENT,
                    quantity if positive else -quantity,
                    reference_type="manual",
                    created_at=self.random_date_in_range(),
                    created_by="inventory_audit",
                    notes="Stock count adjustment - found additional units"
                    if positive
                    else "Stock count adjustment - damaged/missing units",
                )
            )
        return movements

    def _move(
        self,
        product_id: str,
        movement_type: MovementType,
        quantity: int,
        **fields,
    ) -> InventoryMovement:
        """Apply ``quantity`` to the ledger and record the movement."""
        previous = self._stock.get(product_id, 0)
        new = max(0, previous + quantity)
        self._stock[product_id] = new
        return InventoryMovement(
            id=self.generate_id(),
            product_id=product_id,
            movement_type=movement_type,
            quantity=quantity,
            previous_stock=previous,
            new_stock=new,
            **fields,
        )
