"""
Order and order item generation.

Orders go to companies by Zipf-weighted popularity, carry 1-7 line items
picked by product popularity, and derive status, payment state, delivery and
due dates from the scenario and the company's payment terms. Anomaly
handlers mutate a fraction of orders afterwards; every handler records the
anomaly on the order and is a no-op when reapplied.
"""

import logging
import math
from datetime import datetime, timedelta

from order_datagen.config.models import GeneratorConfig, ScenarioProfile
from order_datagen.generators.date_distributor import DateDistributor
from order_datagen.generators.entities.base_generator import BaseGenerator
from order_datagen.generators.entities.product_generator import ProductGenerator
from order_datagen.generators.reference_data import (
    CANCELLATION_REASONS,
    DUPLICATE_MARKER,
    TAX_ID,
    TAX_RATE,
)
from order_datagen.generators.time_series import TimeSeriesEngine
from order_datagen.shared.models import (
    AnomalyClustering,
    AnomalyType,
    Branch,
    Company,
    DiscountKind,
    Order,
    OrderItem,
    OrderStatus,
    PaymentDueType,
    PaymentStatus,
    Product,
    StatusHistoryEntry,
)

logger = logging.getLogger(__name__)

COMPANY_ZIPF_ALPHA = 0.8
MAX_PRODUCT_ATTEMPTS = 100

# Days after the order date at which each history status is reached
STATUS_HISTORY_OFFSETS = {
    OrderStatus.PROCESSING: 1,
    OrderStatus.SHIPPED: 2,
    OrderStatus.DELIVERED: 3,
    OrderStatus.DELIVERY_FAILED: 3,
}

STATUS_PATHS = {
    OrderStatus.PENDING: [],
    OrderStatus.PROCESSING: [OrderStatus.PROCESSING],
    OrderStatus.SHIPPED: [OrderStatus.PROCESSING, OrderStatus.SHIPPED],
    OrderStatus.DELIVERED: [
        OrderStatus.PROCESSING,
        OrderStatus.SHIPPED,
        OrderStatus.DELIVERED,
    ],
    OrderStatus.DELIVERY_FAILED: [
        OrderStatus.PROCESSING,
        OrderStatus.SHIPPED,
        OrderStatus.DELIVERY_FAILED,
    ],
    OrderStatus.CANCELLED: [],
}


def add_month(value: datetime, day: int) -> datetime:
    """Same time of day on ``day`` of the following month."""
    year, month = (value.year + 1, 1) if value.month == 12 else (value.year, value.month + 1)
    return value.replace(year=year, month=month, day=day)


class OrderGenerator(BaseGenerator[Order]):
    """Generates orders against previously generated companies and products."""

    entity_name = "orders"

    def __init__(
        self,
        config: GeneratorConfig,
        scenario: ScenarioProfile,
        companies: list[Company],
        branches: list[Branch],
        products: list[Product],
        time_series: TimeSeriesEngine | None = None,
        seed: int | None = None,
    ):
        super().__init__(config, scenario, seed)
        if not companies:
            raise ValueError("Companies must be generated before orders")
        if not products:
            raise ValueError("Products must be generated before orders")

        self.companies = companies
        self.products = ProductGenerator.by_popularity(products)
        self.time_series = time_series
        self.date_distributor = DateDistributor(self.sampler)

        self._branches_by_company: dict[str, list[Branch]] = {}
        for branch in branches:
            self._branches_by_company.setdefault(branch.company_id, []).append(branch)

    def generate(self, count: int) -> list[Order]:
        orders = []
        for i in range(count):
            orders.append(self.generate_order(self.random_business_hour_date()))
            self.log_progress(i + 1, count)
        return self.inject_anomalies(orders, self.handle_anomaly)

    def generate_for_date_range(self, orders_per_day: float) -> list[Order]:
        """
        Place ``floor(orders_per_day * days)`` orders over the configured
        window with the time-series engine.

        Bursty scenarios inject anomalies in contiguous windows of orders;
        all others run one trial per order.

        Raises:
            ValueError: If no time-series engine was provided
        """
        if self.time_series is None:
            raise ValueError("A TimeSeriesEngine is required for date-range generation")

        total = math.floor(orders_per_day * self.config.days)
        events = self.time_series.generate_time_series(self.generate_order, total)

        anomaly_config = self.scenario.anomaly_config
        if anomaly_config is not None and anomaly_config.clustering == AnomalyClustering.BURST:
            events = self.time_series.inject_temporal_anomalies(
                events, anomaly_config, self.handle_anomaly
            )
            orders = [event.data for event in events]
        else:
            orders = self.inject_anomalies([event.data for event in events], self.handle_anomaly)

        logger.info(f"Generated {len(orders):,} orders over {self.config.days} days")
        return orders

    # ------------------------------------------------------------------
    # Records
    # ------------------------------------------------------------------

    def generate_order(self, order_date: datetime) -> Order:
        """Build one fully derived order placed at ``order_date``."""
        company = self.sampler.zipf(self.companies, COMPANY_ZIPF_ALPHA)
        branch = self._branch_for(company) if self.sampler.random() > 0.7 else None

        order_id = self.generate_id()
        items = self._items(order_id)

        subtotal = sum(item.price * item.quantity for item in items)
        total_tax = sum(item.tax_amount for item in items)

        discount_type = None
        discount_value = None
        discount_amount = 0.0
        if self.sampler.random() < 0.2:
            if self.sampler.random() > 0.5:
                discount_type = DiscountKind.PERCENTAGE
                discount_value = self.sampler.uniform_int(5, 20)
                discount_amount = self.round(subtotal * discount_value / 100)
            else:
                discount_type = DiscountKind.FIXED
                discount_value = self.sampler.uniform_int(50, 500)
                discount_amount = min(discount_value, subtotal)

        status = OrderStatus(
            self.sampler.weighted_choice(self.scenario.distributions.order_status)
        )
        payment_status = self._payment_status(status)
        due_date = self._payment_due_date(order_date, company)

        return Order(
            id=order_id,
            company_id=company.id,
            branch_id=branch.id if branch else None,
            company_name=company.name,
            branch_name=branch.name if branch else None,
            order_date=order_date,
            delivery_date=self.date_distributor.next_delivery_day(order_date, company.region),
            delivery_schedule=company.region,
            payment_due_date=due_date,
            status=status,
            payment_status=payment_status,
            subtotal=self.round(subtotal),
            total_tax=self.round(total_tax),
            discount_type=discount_type,
            discount_value=discount_value,
            discount_amount=self.round(discount_amount),
            grand_total=self.round(subtotal + total_tax - discount_amount),
            items=items,
            delivery_notes=self.faker.sentence() if self.sampler.random() > 0.7 else None,
            status_history=self._status_history(order_date, status),
            area=company.area,
            expected_payment_date=due_date,
            is_paid=payment_status == PaymentStatus.PAID,
            paid_date=self._paid_date(order_date, due_date)
            if payment_status == PaymentStatus.PAID
            else None,
            days_overdue=self.sampler.uniform_int(1, 60)
            if payment_status == PaymentStatus.OVERDUE
            else 0,
            cancellation_reason=self.sampler.pick_one(CANCELLATION_REASONS)
            if status == OrderStatus.CANCELLED
            else None,
        )

    def _items(self, order_id: str) -> list[OrderItem]:
        item_count = self.sampler.uniform_int(1, 8)
        mode = self.scenario.distributions.product_popularity
        selected: set[str] = set()
        items = []

        for _ in range(item_count):
            product = self.sampler.select_by_popularity(self.products, mode)
            attempts = 0
            while product.id in selected and len(selected) < len(self.products):
                attempts += 1
                if attempts >= MAX_PRODUCT_ATTEMPTS:
                    break
                product = self.sampler.select_by_popularity(self.products, mode)
            if product.id in selected:
                continue
            selected.add(product.id)

            quantity = self.sampler.uniform_int(1, 20)
            discount_type = None
            discount_value = None
            if self.sampler.random() < 0.1:
                if self.sampler.random() > 0.6:
                    discount_type = DiscountKind.PERCENTAGE
                    discount_value = self.sampler.uniform_int(5, 15)
                else:
                    discount_type = DiscountKind.FIXED
                    discount_value = self.sampler.uniform_int(10, 100)

            items.append(
                OrderItem(
                    id=self.generate_id(),
                    order_id=order_id,
                    product_id=product.id,
                    product_name=product.name,
                    quantity=quantity,
                    price=product.price,
                    tax_id=TAX_ID,
                    tax_rate=TAX_RATE * 100,
                    tax_amount=self.round(product.price * quantity * TAX_RATE),
                    discount_type=discount_type,
                    discount_value=discount_value,
                )
            )
        return items

    # ------------------------------------------------------------------
    # Derived fields
    # ------------------------------------------------------------------

    def _branch_for(self, company: Company) -> Branch | None:
        branches = self._branches_by_company.get(company.id)
        if not branches:
            return None
        return self.sampler.pick_one(branches)

    def _payment_status(self, status: OrderStatus) -> PaymentStatus:
        # Only delivered orders follow the scenario's payment mix
        if status == OrderStatus.DELIVERED:
            return PaymentStatus(
                self.sampler.weighted_choice(self.scenario.distributions.payment_status)
            )
        return PaymentStatus.PENDING

    @staticmethod
    def _payment_due_date(order_date: datetime, company: Company) -> datetime:
        due_type = company.payment_due_type
        if due_type == PaymentDueType.IMMEDIATE:
            return order_date
        if due_type == PaymentDueType.DAYS_AFTER_ORDER:
            return order_date + timedelta(days=company.payment_due_days or 30)
        if due_type == PaymentDueType.MONTHLY_DATE:
            return add_month(order_date, company.payment_due_date or 1)
        if due_type == PaymentDueType.BULK_SCHEDULE:
            return order_date + timedelta(days=90)
        return order_date + timedelta(days=30)

    def _paid_date(self, order_date: datetime, due_date: datetime) -> datetime:
        # 70% pay up to a week early, the rest up to a month late; never before ordering
        if self.sampler.random() < 0.7:
            return max(order_date, due_date - timedelta(days=self.sampler.uniform_int(0, 7)))
        return due_date + timedelta(days=self.sampler.uniform_int(1, 30))

    def _status_history(
        self, order_date: datetime, status: OrderStatus
    ) -> list[StatusHistoryEntry]:
        history = [StatusHistoryEntry(status=OrderStatus.PENDING, timestamp=order_date)]
        for step in STATUS_PATHS[status]:
            history.append(
                StatusHistoryEntry(
                    status=step,
                    timestamp=order_date + timedelta(days=STATUS_HISTORY_OFFSETS[step]),
                )
            )
        if status == OrderStatus.CANCELLED:
            history.append(
                StatusHistoryEntry(
                    status=OrderStatus.CANCELLED,
                    timestamp=order_date
                    + timedelta(days=math.floor(self.sampler.random() * 2)),
                )
            )
        return history

    # ------------------------------------------------------------------
    # Anomalies
    # ------------------------------------------------------------------

    def handle_anomaly(self, order: Order, anomaly: AnomalyType) -> Order:
        """
        Apply ``anomaly`` to ``order`` in place and return it.

        Reapplying an anomaly the order already carries changes nothing.
        Types without an order-level effect are ignored.
        """
        if anomaly in order.anomalies:
            return order

        if anomaly == AnomalyType.PAYMENT_DELAY:
            if order.payment_status != PaymentStatus.PAID:
                return order
            order.payment_status = PaymentStatus.OVERDUE
            order.is_paid = False
            order.days_overdue = self.sampler.uniform_int(15, 90)
            order.paid_date = None

        elif anomaly == AnomalyType.DELIVERY_DELAY:
            if order.delivery_date is None:
                return order
            order.delivery_date += timedelta(days=self.sampler.uniform_int(3, 14))
            if order.status == OrderStatus.DELIVERED:
                order.status = OrderStatus.SHIPPED
                order.status_history = [
                    entry
                    for entry in order.status_history
                    if entry.status != OrderStatus.DELIVERED
                ]

        elif anomaly == AnomalyType.ORDER_CANCELLATION:
            if order.status != OrderStatus.CANCELLED:
                order.status_history = [
                    *order.status_history,
                    StatusHistoryEntry(
                        status=OrderStatus.CANCELLED,
                        timestamp=order.status_history[-1].timestamp,
                    ),
                ]
            order.status = OrderStatus.CANCELLED
            order.cancellation_reason = self.sampler.pick_one(CANCELLATION_REASONS)
            order.payment_status = PaymentStatus.PENDING
            order.is_paid = False
            order.paid_date = None
            order.days_overdue = 0

        elif anomaly == AnomalyType.DUPLICATE_ORDERS:
            order.delivery_notes = f"{order.delivery_notes or ''} {DUPLICATE_MARKER}".strip()

        else:
            return order

        order.anomalies = [*order.anomalies, anomaly]
        return order
