"""
Maintenance visit generation.

Visits are scheduled for companies and branches that own or lease a
machine. Unresolved visits may spawn a follow-up visit that points back at
the original through ``root_visit_id``.
"""

import logging
from datetime import datetime, timedelta

from order_datagen.config.models import GeneratorConfig, ScenarioProfile
from order_datagen.generators.entities.base_generator import BaseGenerator
from order_datagen.generators.reference_data import (
    CRITICAL_FAILURE_REASON,
    MAINTENANCE_STATUS_THRESHOLDS,
    NON_RESOLUTION_REASON,
    PROBLEM_REASONS,
    SERVICE_COSTS,
    SPARE_PART_PRICES,
    SUPPLY_DELAY_REASON,
    TECHNICIAN_NAMES,
    VISIT_DELAY_REASONS,
)
from order_datagen.shared.models import (
    AnomalyType,
    Branch,
    Company,
    MaintenanceService,
    MaintenanceStatus,
    MaintenanceVisit,
    ResolutionStatus,
    SparePart,
    VisitType,
)

logger = logging.getLogger(__name__)

FOLLOW_UP_RATE = 0.7
UNRESOLVED_STATUSES = (
    MaintenanceStatus.FOLLOW_UP_REQUIRED,
    MaintenanceStatus.WAITING_FOR_PARTS,
)


class MaintenanceGenerator(BaseGenerator[MaintenanceVisit]):
    """Generates maintenance visits and follow-ups for machine sites."""

    entity_name = "maintenanceVisits"

    def __init__(
        self,
        config: GeneratorConfig,
        scenario: ScenarioProfile,
        companies: list[Company],
        branches: list[Branch],
        seed: int | None = None,
    ):
        super().__init__(config, scenario, seed)
        self._company_names = {company.id: company.name for company in companies}
        self.companies = [c for c in companies if c.machine_owned or c.machine_leased]
        self.branches = [b for b in branches if b.machine_owned or b.machine_leased]

    def generate(self, count: int) -> list[MaintenanceVisit]:
        """
        Generate ``count`` visits, then follow-ups for unresolved ones.

        The result can hold more than ``count`` visits because follow-ups
        are appended after anomaly injection. Returns an empty list when no
        site has a machine.
        """
        if not self.companies and not self.branches:
            logger.warning("No companies or branches with machines, skipping maintenance visits")
            return []

        visits = []
        for i in range(count):
            visits.append(self._visit(self.random_date_in_range()))
            self.log_progress(i + 1, count)

        visits = self.inject_anomalies(visits, self.handle_anomaly)
        visits.extend(self._follow_ups(visits))
        return visits

    def handle_anomaly(
        self, visit: MaintenanceVisit, anomaly: AnomalyType
    ) -> MaintenanceVisit:
        """Apply a maintenance failure or a supply-chain delay once per visit."""
        if anomaly in visit.anomalies:
            return visit

        if anomaly == AnomalyType.MAINTENANCE_FAILURE:
            visit.resolution_status = ResolutionStatus.NOT_SOLVED
            visit.status = MaintenanceStatus.FOLLOW_UP_REQUIRED
            visit.non_resolution_reason = CRITICAL_FAILURE_REASON
            visit.resolution_date = None
            visit.resolution_time_days = None
        elif anomaly == AnomalyType.DELIVERY_DELAY:
            delay = self.sampler.uniform_int(5, 14)
            visit.actual_arrival_date = visit.scheduled_date + timedelta(days=delay)
            visit.delay_days = delay
            visit.is_significant_delay = True
            visit.delay_reason = SUPPLY_DELAY_REASON
            if visit.resolution_date is not None:
                visit.resolution_date = max(visit.resolution_date, visit.actual_arrival_date)
                visit.resolution_time_days = (visit.resolution_date - visit.scheduled_date).days
        else:
            return visit

        visit.anomalies.append(anomaly)
        visit.updated_at = max(visit.updated_at, visit.actual_arrival_date or visit.updated_at)
        return visit

    # ------------------------------------------------------------------
    # Visits
    # ------------------------------------------------------------------

    def _site(self) -> tuple[str, str, str, str, str | None, str | None]:
        """
        Pick a site with a machine.

        Returns:
            (company_id, company_name, branch_id, branch_name, barista_id, barista_name)
        """
        if self.branches and (not self.companies or self.sampler.random() > 0.5):
            branch = self.sampler.pick_one(self.branches)
            company_name = self._company_names.get(branch.company_id, branch.name)
            barista = self.sampler.pick_one(branch.baristas) if branch.baristas else None
            return (
                branch.company_id,
                company_name,
                branch.id,
                branch.name,
                barista.id if barista else None,
                barista.name if barista else None,
            )

        company = self.sampler.pick_one(self.companies)
        return company.id, company.name, company.id, company.name, None, None

    def _visit(
        self,
        scheduled: datetime,
        root_visit_id: str | None = None,
        total_visits: int = 1,
        site: tuple | None = None,
    ) -> MaintenanceVisit:
        company_id, company_name, branch_id, branch_name, barista_id, barista_name = (
            site or self._site()
        )

        if root_visit_id is not None or self.sampler.random() > 0.7:
            visit_type = VisitType.CUSTOMER_REQUEST
        else:
            visit_type = VisitType.PERIODIC
        problem_occurred = visit_type == VisitType.CUSTOMER_REQUEST or self.sampler.random() > 0.6
        status = self._status()

        arrival = self._arrival(scheduled, status)
        delay_days = (arrival - scheduled).days if arrival else 0
        resolution_date = None
        if status == MaintenanceStatus.COMPLETED and arrival:
            resolution_date = arrival + timedelta(days=self.sampler.uniform_int(0, 2))

        spare_parts = self._spare_parts() if problem_occurred else []
        services = self._services()
        labor_cost = self.round(self.sampler.uniform(100, 500))
        parts_cost = sum(part.price * part.quantity for part in spare_parts)
        services_cost = sum(service.cost * service.quantity for service in services)

        return MaintenanceVisit(
            id=self.generate_id(),
            branch_id=branch_id,
            company_id=company_id,
            branch_name=branch_name,
            company_name=company_name,
            date=scheduled,
            resolution_date=resolution_date,
            scheduled_date=scheduled,
            actual_arrival_date=arrival,
            delay_days=delay_days,
            delay_reason=self.sampler.pick_one(VISIT_DELAY_REASONS) if delay_days > 0 else None,
            is_significant_delay=delay_days > 3,
            technician_name=self.sampler.pick_one(TECHNICIAN_NAMES),
            visit_type=visit_type,
            maintenance_notes=self.faker.paragraph(),
            barista_id=barista_id,
            barista_name=barista_name,
            barista_recommendations=self.faker.sentence() if self.sampler.random() > 0.7 else None,
            problem_occurred=problem_occurred,
            problem_reason=self.sampler.pick_random(
                PROBLEM_REASONS, self.sampler.uniform_int(1, 3)
            )
            if problem_occurred
            else None,
            resolution_status=self._resolution_status(status, problem_occurred),
            non_resolution_reason=NON_RESOLUTION_REASON if status in UNRESOLVED_STATUSES else None,
            spare_parts=spare_parts,
            services=services,
            overall_report=self.faker.paragraph(),
            report_signed_by=self.faker.name(),
            supervisor_witness=self.faker.name() if self.sampler.random() > 0.7 else None,
            status=status,
            root_visit_id=root_visit_id,
            total_visits=total_visits,
            total_cost=self.round(parts_cost + services_cost + labor_cost),
            resolution_time_days=(resolution_date - scheduled).days if resolution_date else None,
            labor_cost=labor_cost,
            created_at=scheduled,
            updated_at=resolution_date or arrival or scheduled,
        )

    def _status(self) -> MaintenanceStatus:
        u = self.sampler.random()
        for threshold, status in MAINTENANCE_STATUS_THRESHOLDS:
            if u < threshold:
                return MaintenanceStatus(status)
        return MaintenanceStatus.CANCELLED

    def _arrival(self, scheduled: datetime, status: MaintenanceStatus) -> datetime | None:
        if status in (MaintenanceStatus.SCHEDULED, MaintenanceStatus.CANCELLED):
            return None
        # 80% on time
        if self.sampler.random() < 0.8:
            return scheduled
        return scheduled + timedelta(days=self.sampler.uniform_int(1, 7))

    def _resolution_status(
        self, status: MaintenanceStatus, problem_occurred: bool
    ) -> ResolutionStatus | None:
        if not problem_occurred:
            return None
        if status == MaintenanceStatus.COMPLETED:
            return ResolutionStatus.SOLVED if self.sampler.random() > 0.1 else ResolutionStatus.PARTIAL
        if status == MaintenanceStatus.FOLLOW_UP_REQUIRED:
            return ResolutionStatus.PARTIAL
        if status == MaintenanceStatus.WAITING_FOR_PARTS:
            return ResolutionStatus.WAITING_PARTS
        if status in (MaintenanceStatus.CANCELLED, MaintenanceStatus.SCHEDULED):
            return None
        return ResolutionStatus.NOT_SOLVED

    def _spare_parts(self) -> list[SparePart]:
        names = self.sampler.pick_random(list(SPARE_PART_PRICES), self.sampler.uniform_int(0, 4))
        parts = []
        for name in names:
            low, high = SPARE_PART_PRICES[name]
            parts.append(
                SparePart(
                    name=name,
                    quantity=self.sampler.uniform_int(1, 3),
                    price=self.round(self.sampler.uniform(low, high)),
                    paid_by="Client" if self.sampler.random() > 0.3 else "Company",
                )
            )
        return parts

    def _services(self) -> list[MaintenanceService]:
        names = self.sampler.pick_random(list(SERVICE_COSTS), self.sampler.uniform_int(1, 4))
        services = []
        for name in names:
            low, high = SERVICE_COSTS[name]
            services.append(
                MaintenanceService(
                    name=name,
                    cost=self.round(self.sampler.uniform(low, high)),
                    quantity=1,
                    paid_by="Client" if self.sampler.random() > 0.2 else "Company",
                )
            )
        return services

    def _follow_ups(self, visits: list[MaintenanceVisit]) -> list[MaintenanceVisit]:
        follow_ups = []
        for original in visits:
            unresolved = (
                original.status in UNRESOLVED_STATUSES
                or original.resolution_status == ResolutionStatus.PARTIAL
            )
            if not unresolved or self.sampler.random() >= FOLLOW_UP_RATE:
                continue
            scheduled = original.date + timedelta(days=self.sampler.uniform_int(3, 14))
            follow_ups.append(
                self._visit(
                    scheduled,
                    root_visit_id=original.id,
                    total_visits=original.total_visits + 1,
                    site=(
                        original.company_id,
                        original.company_name,
                        original.branch_id,
                        original.branch_name,
                        original.barista_id,
                        original.barista_name,
                    ),
                )
            )
        logger.debug(f"Generated {len(follow_ups)} follow-up maintenance visits")
        return follow_ups
