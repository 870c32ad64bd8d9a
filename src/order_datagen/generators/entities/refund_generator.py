"""
Return and refund generation.

About 5% of delivered orders are returned. Every return gets a refund whose
status follows the return's status.
"""

import logging
from datetime import timedelta

from order_datagen.config.models import GeneratorConfig, ScenarioProfile
from order_datagen.generators.entities.base_generator import BaseGenerator
from order_datagen.generators.reference_data import (
    REFUND_REJECTION_REASONS,
    RETURN_REASONS,
)
from order_datagen.shared.models import (
    Order,
    OrderStatus,
    Refund,
    RefundStatus,
    Return,
    ReturnStatus,
)

logger = logging.getLogger(__name__)

RETURN_RATE = 0.05


class RefundGenerator(BaseGenerator[Refund]):
    """Generates returns, then one refund per return."""

    entity_name = "refunds"

    def __init__(
        self,
        config: GeneratorConfig,
        scenario: ScenarioProfile,
        orders: list[Order],
        seed: int | None = None,
    ):
        super().__init__(config, scenario, seed)
        self.orders = orders
        self._orders_by_id = {order.id: order for order in orders}
        self.returns: list[Return] = []

    def generate(self, count: int) -> list[Refund]:
        """
        Generate returns and their refunds.

        The returns are kept on ``self.returns`` for callers that persist them.
        """
        self.returns = self._generate_returns()[:count]
        refunds = [self._refund_for(record) for record in self.returns]
        logger.debug(f"Generated {len(self.returns)} returns and {len(refunds)} refunds")
        return refunds

    def _generate_returns(self) -> list[Return]:
        returns = []
        for order in self.orders:
            if order.status != OrderStatus.DELIVERED:
                continue
            if self.sampler.random() >= RETURN_RATE:
                continue

            return_date = order.order_date + timedelta(days=self.sampler.uniform_int(1, 14))
            u = self.sampler.random()
            if u < 0.6:
                status = ReturnStatus.COMPLETED
            elif u < 0.85:
                status = ReturnStatus.PROCESSING
            else:
                status = ReturnStatus.REJECTED

            settle_days = 0 if status == ReturnStatus.PROCESSING else self.sampler.uniform_int(1, 5)
            returns.append(
                Return(
                    id=self.generate_id(),
                    order_id=order.id,
                    return_date=return_date,
                    reason=self.sampler.pick_one(RETURN_REASONS),
                    status=status,
                    created_at=return_date,
                    updated_at=return_date + timedelta(days=settle_days),
                )
            )
        return returns

    def _refund_for(self, record: Return) -> Refund:
        order = self._orders_by_id[record.order_id]
        amount = self.round(order.grand_total * self.sampler.uniform(0.5, 1))

        reason = None
        processed_at = None
        if record.status == ReturnStatus.COMPLETED:
            status = RefundStatus.COMPLETED
            processed_at = record.return_date + timedelta(days=self.sampler.uniform_int(1, 7))
        elif record.status == ReturnStatus.PROCESSING:
            status = RefundStatus.PENDING if self.sampler.random() > 0.5 else RefundStatus.APPROVED
            if status == RefundStatus.APPROVED:
                processed_at = record.return_date + timedelta(
                    days=self.sampler.uniform_int(1, 3)
                )
        else:
            status = RefundStatus.REJECTED
            reason = self.sampler.pick_one(REFUND_REJECTION_REASONS)
            processed_at = record.return_date + timedelta(days=self.sampler.uniform_int(1, 5))

        return Refund(
            id=self.generate_id(),
            return_id=record.id,
            order_id=record.order_id,
            amount=0 if status == RefundStatus.REJECTED else amount,
            status=status,
            reason=reason,
            processed_at=processed_at,
            processed_by="accounts_dept" if processed_at else None,
            created_at=record.return_date,
        )
