"""
Discount record generation.

Discount records mirror the discounts already priced into orders: one
record for an order-level discount and one per discounted line item.
"""

import logging
from datetime import datetime

from order_datagen.config.models import GeneratorConfig, ScenarioProfile
from order_datagen.generators.entities.base_generator import BaseGenerator
from order_datagen.generators.reference_data import DISCOUNT_REASONS
from order_datagen.shared.models import Discount, DiscountKind, Order, OrderItem

logger = logging.getLogger(__name__)

DISCOUNT_RATE = 0.2


class DiscountGenerator(BaseGenerator[Discount]):
    """Generates discount records for about 20% of orders."""

    entity_name = "discounts"

    def __init__(
        self,
        config: GeneratorConfig,
        scenario: ScenarioProfile,
        orders: list[Order],
        seed: int | None = None,
    ):
        super().__init__(config, scenario, seed)
        self.orders = orders

    def generate(self, count: int) -> list[Discount]:
        discounts: list[Discount] = []
        for order in self.orders:
            if self.sampler.random() < DISCOUNT_RATE:
                if order.discount_type is not None and order.discount_amount:
                    discounts.append(self._order_discount(order))
                for item in order.items:
                    if item.discount_type is not None and item.discount_value:
                        discounts.append(self._item_discount(order, item))
            if len(discounts) >= count:
                break
        return discounts[:count]

    def generate_promotional_discounts(
        self, start_date: datetime, end_date: datetime, discount_percent: int
    ) -> list[Discount]:
        """Percentage discount on every order placed in ``[start_date, end_date]``."""
        return [
            Discount(
                id=self.generate_id(),
                order_id=order.id,
                type=DiscountKind.PERCENTAGE,
                value=discount_percent,
                amount=self.round(order.subtotal * discount_percent / 100),
                reason="Promotional period discount",
                applied_at=order.order_date,
                applied_by="system",
            )
            for order in self.orders
            if start_date <= order.order_date <= end_date
        ]

    def _order_discount(self, order: Order) -> Discount:
        return Discount(
            id=self.generate_id(),
            order_id=order.id,
            type=order.discount_type,
            value=order.discount_value,
            amount=order.discount_amount,
            reason=self.sampler.pick_one(DISCOUNT_REASONS),
            applied_at=order.order_date,
            applied_by="sales_rep" if self.sampler.random() > 0.5 else "system",
        )

    def _item_discount(self, order: Order, item: OrderItem) -> Discount:
        line_total = item.price * item.quantity
        if item.discount_type == DiscountKind.PERCENTAGE:
            amount = self.round(line_total * item.discount_value / 100)
        else:
            amount = self.round(min(item.discount_value, line_total))

        return Discount(
            id=self.generate_id(),
            order_id=order.id,
            order_item_id=item.id,
            type=item.discount_type,
            value=item.discount_value,
            amount=amount,
            reason=self.sampler.pick_one(DISCOUNT_REASONS),
            applied_at=order.order_date,
            applied_by="sales_rep",
        )
