"""
Payment generation for settled orders.
"""

import logging
import math
from datetime import datetime, timedelta

from order_datagen.config.models import GeneratorConfig, ScenarioProfile
from order_datagen.generators.entities.base_generator import BaseGenerator
from order_datagen.shared.models import Order, Payment, PaymentStatus

logger = logging.getLogger(__name__)

BANK_TRANSFER = "Bank Transfer"
OTHER = "Other"


class PaymentGenerator(BaseGenerator[Payment]):
    """Generates one payment per paid order, plus bulk settlements on demand."""

    entity_name = "payments"

    def __init__(
        self,
        config: GeneratorConfig,
        scenario: ScenarioProfile,
        orders: list[Order],
        seed: int | None = None,
    ):
        super().__init__(config, scenario, seed)
        self.orders = orders

    def generate(self, count: int) -> list[Payment]:
        payments = []
        for order in self.orders:
            if order.payment_status != PaymentStatus.PAID:
                continue
            payments.append(self._payment_for(order))
            if len(payments) >= count:
                break
        return payments

    def generate_bulk_payment(self, orders: list[Order], cycle_id: str) -> Payment:
        """
        Settle several orders with one transfer 30 days after the latest.

        Raises:
            ValueError: If ``orders`` is empty
        """
        if not orders:
            raise ValueError("A bulk payment needs at least one order")

        latest = max(order.order_date for order in orders)
        payment_date = latest + timedelta(days=30)
        return Payment(
            id=self.generate_id(),
            invoice_id=cycle_id,
            order_id=orders[0].id,
            payment_date=payment_date,
            amount=self.round(sum(order.grand_total for order in orders)),
            method=BANK_TRANSFER,
            reference=self._reference(BANK_TRANSFER, payment_date),
            notes=f"Bulk payment for {len(orders)} orders - Cycle: {cycle_id}",
            marked_by="accounts_team",
            created_at=payment_date,
        )

    def payment_date_for(self, order_date: datetime, due_date: datetime) -> datetime:
        """
        Draw a payment date relative to the due date.

        10% pay on the order date, 30% early, 30% around the due date,
        20% slightly late and 10% very late. Never before the order date.
        """
        u = self.sampler.random()
        if u < 0.1:
            return order_date
        if u < 0.4:
            value = due_date - timedelta(days=self.sampler.uniform_int(3, 15))
        elif u < 0.7:
            value = due_date + timedelta(days=self.sampler.uniform_int(-2, 2))
        elif u < 0.9:
            value = due_date + timedelta(days=self.sampler.uniform_int(1, 14))
        else:
            value = due_date + timedelta(days=self.sampler.uniform_int(15, 45))
        return max(order_date, value)

    def _payment_for(self, order: Order) -> Payment:
        due_date = order.payment_due_date or order.order_date + timedelta(days=30)
        # Keep the payment consistent with the date already stamped on the order
        payment_date = order.paid_date or self.payment_date_for(order.order_date, due_date)
        method = BANK_TRANSFER if self.sampler.random() > 0.6 else OTHER
        reference = self._reference(method, payment_date)

        return Payment(
            id=self.generate_id(),
            invoice_id=order.id,
            order_id=order.id,
            payment_date=payment_date,
            amount=order.grand_total,
            method=method,
            reference=reference,
            notes=self.faker.sentence() if self.sampler.random() > 0.8 else None,
            marked_by="accounts_team" if self.sampler.random() > 0.3 else "auto_reconciliation",
            created_at=payment_date,
        )

    def _reference(self, method: str, payment_date: datetime) -> str:
        prefix = "TRF" if method == BANK_TRANSFER else "PAY"
        number = math.floor(self.sampler.random() * 1_000_000)
        return f"{prefix}-{payment_date:%Y%m%d}-{number:06d}"
