"""
Shipment and delivery attempt generation.
"""

import logging
import math
from datetime import timedelta

from order_datagen.config.models import GeneratorConfig, ScenarioProfile
from order_datagen.generators.entities.base_generator import BaseGenerator
from order_datagen.generators.reference_data import DELIVERY_FAILURE_REASONS, DRIVER_NAMES
from order_datagen.shared.models import (
    AttemptStatus,
    DeliveryAttempt,
    Order,
    OrderStatus,
    Shipment,
    ShipmentStatus,
)

logger = logging.getLogger(__name__)

SHIPMENT_STATUS_BY_ORDER_STATUS = {
    OrderStatus.PROCESSING: ShipmentStatus.PENDING,
    OrderStatus.SHIPPED: ShipmentStatus.IN_TRANSIT,
    OrderStatus.DELIVERED: ShipmentStatus.DELIVERED,
    OrderStatus.DELIVERY_FAILED: ShipmentStatus.FAILED,
}

UNSHIPPED_STATUSES = (OrderStatus.PENDING, OrderStatus.CANCELLED)


class ShipmentGenerator(BaseGenerator[Shipment]):
    """Generates one shipment per order that has left the warehouse queue."""

    entity_name = "shipments"

    def __init__(
        self,
        config: GeneratorConfig,
        scenario: ScenarioProfile,
        orders: list[Order],
        seed: int | None = None,
    ):
        super().__init__(config, scenario, seed)
        self.orders = orders

    def generate(self, count: int) -> list[Shipment]:
        shipments = []
        for order in self.orders:
            if order.status in UNSHIPPED_STATUSES:
                continue
            shipments.append(self._shipment_for(order))
            if len(shipments) >= count:
                break
        return shipments

    def _shipment_for(self, order: Order) -> Shipment:
        shipment_id = self.generate_id()
        scheduled = order.delivery_date or order.order_date + timedelta(days=2)
        status = SHIPMENT_STATUS_BY_ORDER_STATUS.get(order.status, ShipmentStatus.PENDING)
        attempts = self._attempts(shipment_id, order.status, scheduled)

        actual = None
        if status == ShipmentStatus.DELIVERED:
            actual = next(
                (a.attempt_date for a in attempts if a.status == AttemptStatus.SUCCESS),
                None,
            )

        if self.sampler.random() < self.scenario.distributions.delivery_delays and actual:
            actual += timedelta(days=self.sampler.uniform_int(1, 5))

        last_activity = max(
            [order.order_date, *(a.attempt_date for a in attempts), *([actual] if actual else [])]
        )
        return Shipment(
            id=shipment_id,
            order_id=order.id,
            status=status,
            scheduled_delivery_date=scheduled,
            actual_delivery_date=actual,
            attempts=attempts,
            driver_name=self.sampler.pick_one(DRIVER_NAMES),
            vehicle_id=f"VH-{math.floor(self.sampler.random() * 100):03d}",
            notes=self.faker.sentence() if self.sampler.random() > 0.7 else None,
            created_at=order.order_date,
            updated_at=last_activity,
        )

    def _attempts(self, shipment_id, order_status, scheduled) -> list[DeliveryAttempt]:
        """
        Delivery attempts consistent with the order's final status.

        Delivered orders succeed on the first attempt 80% of the time, the
        second 15% and the third 5%. Failed deliveries make 2-3 failed
        attempts; shipped orders have one attempt in progress.
        """
        if order_status not in (
            OrderStatus.DELIVERED,
            OrderStatus.DELIVERY_FAILED,
            OrderStatus.SHIPPED,
        ):
            return []

        first = scheduled + timedelta(hours=self.sampler.uniform_int(8, 18))

        def attempt(number, status, failure=False, notes=None):
            return DeliveryAttempt(
                id=self.generate_id(),
                shipment_id=shipment_id,
                attempt_number=number,
                attempt_date=first + timedelta(days=number - 1),
                status=status,
                failure_reason=self.sampler.pick_one(DELIVERY_FAILURE_REASONS)
                if failure
                else None,
                notes=notes,
            )

        if order_status == OrderStatus.DELIVERED:
            u = self.sampler.random()
            if u < 0.8:
                return [attempt(1, AttemptStatus.SUCCESS)]
            if u < 0.95:
                return [
                    attempt(1, AttemptStatus.RESCHEDULED, failure=True),
                    attempt(2, AttemptStatus.SUCCESS),
                ]
            return [
                attempt(1, AttemptStatus.FAILED, failure=True),
                attempt(2, AttemptStatus.RESCHEDULED, failure=True),
                attempt(3, AttemptStatus.SUCCESS),
            ]

        if order_status == OrderStatus.DELIVERY_FAILED:
            attempt_count = self.sampler.uniform_int(2, 4)
            return [
                attempt(
                    number,
                    AttemptStatus.FAILED,
                    failure=True,
                    notes="Maximum attempts reached" if number == attempt_count else None,
                )
                for number in range(1, attempt_count + 1)
            ]

        return [attempt(1, AttemptStatus.RESCHEDULED, notes="Delivery in progress")]
