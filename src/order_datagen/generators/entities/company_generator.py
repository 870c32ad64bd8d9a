"""
Company and branch generation.

Companies carry payment terms, machine ownership and a payment score; branches
inherit machine and maintenance arrangements from their parent company and
are staffed with baristas.
"""

import logging
import math

from order_datagen.generators.date_distributor import DEFAULT_DELIVERY_SCHEDULE
from order_datagen.generators.entities.base_generator import BaseGenerator
from order_datagen.generators.reference_data import (
    AREAS,
    COMPANY_STATUSES,
    CONTACT_POSITIONS,
    INDUSTRIES,
    MAINTENANCE_LOCATIONS,
    PAYMENT_CONFIGS,
    PAYMENT_METHODS,
    PAYMENT_SCORE_BANDS,
    STREET_NAMES,
    SUSPENSION_REASON,
)
from order_datagen.shared.models import (
    AnomalyType,
    Barista,
    Branch,
    Company,
    CompanyPaymentStatus,
    Contact,
    Region,
)

logger = logging.getLogger(__name__)


def payment_status_for_score(score: float) -> CompanyPaymentStatus:
    """Map a payment score onto its status band."""
    for lower_bound, status in PAYMENT_SCORE_BANDS:
        if score >= lower_bound:
            return CompanyPaymentStatus(status)
    return CompanyPaymentStatus.CRITICAL


class CompanyGenerator(BaseGenerator[Company]):
    """Generates companies, and branches for a subset of them."""

    entity_name = "companies"

    def generate(self, count: int) -> list[Company]:
        companies = []
        for i in range(count):
            companies.append(self._generate_company())
            self.log_progress(i + 1, count)
        return companies

    def generate_branches(
        self, companies: list[Company], branch_ratio: float
    ) -> list[Branch]:
        """
        Generate 1-3 branches for ``floor(len(companies) * branch_ratio)``
        randomly chosen companies.

        Args:
            companies: Parent companies
            branch_ratio: Fraction of companies that get branches

        Returns:
            Branches, each staffed with 1-3 baristas
        """
        selected = self.sampler.pick_random(
            companies, math.floor(len(companies) * branch_ratio)
        )
        branches = []
        for company in selected:
            branch_count = self.sampler.uniform_int(1, 4)
            for number in range(1, branch_count + 1):
                branches.append(self._generate_branch(company, number))

        logger.debug(
            f"Generated {len(branches)} branches for {len(selected)} companies"
        )
        return branches

    # ------------------------------------------------------------------
    # Records
    # ------------------------------------------------------------------

    def _generate_company(self) -> Company:
        name = self._company_name()
        industry = self.sampler.pick_one(INDUSTRIES)
        region = self._region()
        area = self.sampler.pick_one(AREAS)
        status = self.sampler.pick_one(COMPANY_STATUSES)

        payment_config = self.sampler.pick_one(PAYMENT_CONFIGS)
        payment_method = self.sampler.pick_one(self._payment_methods())

        machine_owned = self.sampler.random() > 0.4
        machine_leased = not machine_owned and self.sampler.random() > 0.6

        score, degraded = self._payment_score()
        payment_status = payment_status_for_score(score)
        suspended = degraded and payment_status in (
            CompanyPaymentStatus.POOR,
            CompanyPaymentStatus.CRITICAL,
        )

        created_at = self.random_date_in_range()
        return Company(
            id=self.generate_id(),
            name=name,
            industry=industry,
            location=self._address(area),
            region=region,
            delivery_days=list(DEFAULT_DELIVERY_SCHEDULE[region]),
            area=area,
            status=status,
            contacts=self._contacts(1, 3),
            tax_number=self._tax_number(),
            email=self.faker.company_email().lower(),
            manager_name=self.faker.name(),
            machine_owned=machine_owned,
            machine_leased=machine_leased,
            lease_monthly_cost=self.round(self.sampler.uniform(1000, 5000))
            if machine_leased
            else None,
            maintenance_location=self.sampler.pick_one(MAINTENANCE_LOCATIONS),
            warehouse_location=self._address(area) if self.sampler.random() > 0.3 else None,
            warehouse_contacts=self._contacts(1, 2) if self.sampler.random() > 0.5 else None,
            payment_method=payment_method,
            **payment_config,
            current_payment_score=score,
            payment_status=payment_status,
            performance_score=self.round(self.sampler.uniform(60, 100)),
            last_12_months_revenue=self.round(self.sampler.uniform(10_000, 500_000)),
            is_suspended=suspended,
            suspension_reason=SUSPENSION_REASON if suspended else None,
            created_at=created_at,
            updated_at=created_at,
            anomalies=[AnomalyType.PAYMENT_DELAY] if degraded else [],
        )

    def _generate_branch(self, parent: Company, number: int) -> Branch:
        area = self.sampler.pick_one(AREAS)
        region = self._region()
        branch_id = self.generate_id()

        return Branch(
            id=branch_id,
            company_id=parent.id,
            name=f"{parent.name} - Branch {number}",
            contacts=self._contacts(1, 2),
            email=self.faker.company_email().lower(),
            location=self._address(area),
            machine_owned=parent.machine_owned,
            machine_leased=parent.machine_leased,
            lease_monthly_cost=parent.lease_monthly_cost,
            performance_score=self.round(self.sampler.uniform(50, 100)),
            warehouse_location=self._address(area) if self.sampler.random() > 0.5 else None,
            warehouse_manager=self.faker.name(),
            warehouse_phone=self.egyptian_phone(),
            region=region,
            delivery_days=list(DEFAULT_DELIVERY_SCHEDULE[region]),
            warehouse_contacts=self._contacts(1, 2) if self.sampler.random() > 0.5 else None,
            baristas=self._baristas(branch_id),
            area=area,
            maintenance_location=parent.maintenance_location,
            created_at=max(parent.created_at, self.random_date_in_range()),
        )

    def _baristas(self, branch_id: str) -> list[Barista]:
        return [
            Barista(
                id=self.generate_id(),
                branch_id=branch_id,
                name=self.faker.name(),
                phone_number=self.egyptian_phone(),
                rating=self.round(self.sampler.uniform(3, 5), 1),
                notes=self.faker.sentence() if self.sampler.random() > 0.7 else None,
            )
            for _ in range(self.sampler.uniform_int(1, 4))
        ]

    # ------------------------------------------------------------------
    # Field helpers
    # ------------------------------------------------------------------

    def _region(self) -> Region:
        return Region(
            self.sampler.weighted_choice(self.scenario.distributions.region_distribution)
        )

    def _payment_methods(self) -> list[str]:
        overrides = self.scenario.profile_overrides
        if overrides is not None and overrides.payment_methods:
            return list(overrides.payment_methods)
        return PAYMENT_METHODS

    def _payment_score(self) -> tuple[float, bool]:
        """Score in 60-100, cut by 30% for companies hit by an anomaly."""
        base = self.sampler.uniform(60, 100)
        if self.sampler.random() < self.scenario.anomaly_rate:
            return self.round(base * 0.7), True
        return self.round(base), False

    def _company_name(self) -> str:
        pattern = self.sampler.uniform_int(0, 6)
        if pattern == 0:
            return self.faker.company()
        if pattern == 1:
            return f"{self.faker.last_name()} Coffee"
        if pattern == 2:
            return f"Cafe {self.faker.word().capitalize()}"
        if pattern == 3:
            return f"{self.faker.color_name()} Cup Cafe"
        if pattern == 4:
            return f"{self.faker.city()} Roasters"
        return f"The {self.faker.word().capitalize()} Bean"

    def _contacts(self, min_count: int, max_count: int) -> list[Contact]:
        count = self.sampler.uniform_int(min_count, max_count + 1)
        return [
            Contact(
                name=self.faker.name(),
                position=self.sampler.pick_one(CONTACT_POSITIONS),
                phone_numbers=[self.egyptian_phone()],
            )
            for _ in range(count)
        ]

    def _tax_number(self) -> str:
        number = math.floor(self.sampler.random() * 1_000_000_000)
        suffix = math.floor(self.sampler.random() * 1000)
        return f"{number:09d}-{suffix:03d}"

    def _address(self, area: str) -> str:
        street_number = math.floor(self.sampler.random() * 200) + 1
        street = self.sampler.pick_one(STREET_NAMES)
        return f"{street_number} {street} St, {area}"
