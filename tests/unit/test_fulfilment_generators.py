"""
Unit tests for the generators that derive from orders: inventory movements,
shipments, payments, discounts, returns and refunds.
"""

import re
from datetime import datetime

import pytest

from order_datagen.generators.entities import (
    DiscountGenerator,
    InventoryGenerator,
    PaymentGenerator,
    RefundGenerator,
    ShipmentGenerator,
)
from order_datagen.shared.models import (
    AttemptStatus,
    MovementType,
    OrderStatus,
    PaymentStatus,
    RefundStatus,
    ReturnStatus,
    ShipmentStatus,
)

REFERENCE_PATTERN = re.compile(r"^(TRF|PAY)-\d{8}-\d{6}$")


class TestInventory:
    def test_ledger_never_negative(self, config, scenario, products, orders):
        generator = InventoryGenerator(config, scenario, products, orders)
        movements = generator.generate(10_000)
        assert movements
        for movement in movements:
            assert movement.new_stock == max(0, movement.previous_stock + movement.quantity)
            assert movement.new_stock >= 0
        assert all(level >= 0 for level in generator.stock_levels().values())

    def test_sorted_and_truncated(self, config, scenario, products, orders):
        movements = InventoryGenerator(config, scenario, products, orders).generate(25)
        assert len(movements) == 25
        times = [m.created_at for m in movements]
        assert times == sorted(times)

    def test_cancelled_orders_not_fulfilled(self, config, scenario, products, orders):
        cancelled = {o.id for o in orders if o.status == OrderStatus.CANCELLED}
        movements = InventoryGenerator(config, scenario, products, orders).generate(10_000)
        fulfilment = [m for m in movements if m.movement_type == MovementType.ORDER_FULFILLMENT]
        assert not cancelled & {m.reference_id for m in fulfilment}
        assert all(m.quantity < 0 for m in fulfilment)

    def test_return_movements(self, config, scenario, products, orders):
        inventory = InventoryGenerator(config, scenario, products, orders)
        refunds = RefundGenerator(config, scenario, orders)
        refunds.generate(100)
        movements = inventory.add_return_movements(refunds.returns)
        assert all(m.movement_type == MovementType.RETURN for m in movements)
        assert all(m.reference_type == "return" and m.quantity >= 0 for m in movements)


class TestShipments:
    def test_one_per_shipped_order(self, config, scenario, orders):
        shipments = ShipmentGenerator(config, scenario, orders).generate(len(orders))
        shipped = [o for o in orders if o.status not in (OrderStatus.PENDING, OrderStatus.CANCELLED)]
        assert [s.order_id for s in shipments] == [o.id for o in shipped]

    def test_attempts_match_status(self, config, scenario, orders):
        shipments = ShipmentGenerator(config, scenario, orders).generate(len(orders))
        for shipment in shipments:
            numbers = [a.attempt_number for a in shipment.attempts]
            assert numbers == list(range(1, len(numbers) + 1))
            assert all(a.shipment_id == shipment.id for a in shipment.attempts)
            if shipment.status == ShipmentStatus.DELIVERED:
                assert shipment.attempts[-1].status == AttemptStatus.SUCCESS
                assert shipment.actual_delivery_date is not None
            elif shipment.status == ShipmentStatus.FAILED:
                assert 2 <= len(shipment.attempts) <= 3
                assert all(a.status == AttemptStatus.FAILED for a in shipment.attempts)
            else:
                assert shipment.actual_delivery_date is None
            assert shipment.updated_at >= shipment.created_at

    def test_count_limit(self, config, scenario, orders):
        assert len(ShipmentGenerator(config, scenario, orders).generate(3)) == 3


class TestPayments:
    def test_paid_orders_only(self, config, scenario, orders):
        payments = PaymentGenerator(config, scenario, orders).generate(len(orders))
        paid = {o.id: o for o in orders if o.payment_status == PaymentStatus.PAID}
        assert len(payments) == len(paid)
        for payment in payments:
            order = paid[payment.order_id]
            assert payment.amount == order.grand_total
            assert payment.payment_date >= order.order_date
            assert REFERENCE_PATTERN.match(payment.reference)
            assert payment.reference[4:12] == f"{payment.payment_date:%Y%m%d}"
            assert payment.method in ("Bank Transfer", "Other")
            assert payment.reference.startswith("TRF" if payment.method == "Bank Transfer" else "PAY")

    def test_orders_left_untouched(self, config, scenario, orders):
        before = [order.model_dump() for order in orders]
        PaymentGenerator(config, scenario, orders).generate(len(orders))
        assert [order.model_dump() for order in orders] == before

    def test_payment_date_never_before_order(self, config, scenario, orders):
        generator = PaymentGenerator(config, scenario, orders)
        order_date = datetime(2024, 1, 10)
        for _ in range(200):
            assert generator.payment_date_for(order_date, order_date) >= order_date

    def test_bulk_payment(self, config, scenario, orders):
        generator = PaymentGenerator(config, scenario, orders)
        batch = orders[:5]
        payment = generator.generate_bulk_payment(batch, "cycle-1")
        latest = max(o.order_date for o in batch)
        assert (payment.payment_date - latest).days == 30
        assert payment.amount == pytest.approx(sum(o.grand_total for o in batch), abs=0.01)
        assert payment.reference.startswith("TRF-")
        assert "cycle-1" in payment.notes

    def test_bulk_payment_requires_orders(self, config, scenario, orders):
        with pytest.raises(ValueError):
            PaymentGenerator(config, scenario, orders).generate_bulk_payment([], "c")


class TestDiscounts:
    def test_discounts_reference_real_orders_and_items(self, config, scenario, orders):
        discounts = DiscountGenerator(config, scenario, orders).generate(1000)
        by_id = {o.id: o for o in orders}
        for discount in discounts:
            order = by_id[discount.order_id]
            if discount.order_item_id is None:
                assert discount.amount == order.discount_amount
            else:
                item = next(i for i in order.items if i.id == discount.order_item_id)
                assert discount.type == item.discount_type
                assert discount.amount <= item.price * item.quantity

    def test_count_limit(self, config, scenario, orders):
        assert len(DiscountGenerator(config, scenario, orders).generate(2)) <= 2

    def test_promotional_window(self, config, scenario, orders):
        start, end = datetime(2024, 1, 2), datetime(2024, 1, 4)
        promos = DiscountGenerator(config, scenario, orders).generate_promotional_discounts(
            start, end, 10
        )
        expected = [o for o in orders if start <= o.order_date <= end]
        assert len(promos) == len(expected)
        for promo, order in zip(promos, expected):
            assert promo.amount == pytest.approx(order.subtotal * 0.1, abs=0.01)


class TestReturnsAndRefunds:
    def test_one_refund_per_return(self, config, scenario, orders):
        generator = RefundGenerator(config, scenario, orders)
        refunds = generator.generate(100)
        assert len(refunds) == len(generator.returns)
        assert [r.return_id for r in refunds] == [r.id for r in generator.returns]

    def test_returns_only_for_delivered_orders(self, config, scenario, orders):
        generator = RefundGenerator(config, scenario, orders)
        generator.generate(100)
        by_id = {o.id: o for o in orders}
        for record in generator.returns:
            order = by_id[record.order_id]
            assert order.status == OrderStatus.DELIVERED
            assert 1 <= (record.return_date - order.order_date).days <= 13

    def test_refund_status_follows_return(self, config, scenario, orders):
        generator = RefundGenerator(config, scenario, orders)
        refunds = generator.generate(100)
        returns = {r.id: r for r in generator.returns}
        for refund in refunds:
            record = returns[refund.return_id]
            if record.status == ReturnStatus.COMPLETED:
                assert refund.status == RefundStatus.COMPLETED
                assert refund.processed_at is not None
            elif record.status == ReturnStatus.PROCESSING:
                assert refund.status in (RefundStatus.PENDING, RefundStatus.APPROVED)
            else:
                assert refund.status == RefundStatus.REJECTED
                assert refund.amount == 0
                assert refund.reason

    def test_truncation_keeps_pairs(self, config, scenario, orders):
        generator = RefundGenerator(config, scenario, orders)
        refunds = generator.generate(1)
        assert len(refunds) == len(generator.returns) <= 1
