"""
Unit tests for the master-data generators: users, companies, branches,
addresses and products.
"""

import re

import pytest

from order_datagen.generators.entities import (
    AddressGenerator,
    CompanyGenerator,
    ProductGenerator,
    UserGenerator,
)
from order_datagen.generators.entities.base_generator import BaseGenerator
from order_datagen.generators.entities.company_generator import payment_status_for_score
from order_datagen.shared.models import AnomalyType, CompanyPaymentStatus, UserRole

PHONE_PATTERN = re.compile(r"^\+20(010|011|012|015)\d{8}$")


class TestBaseGenerator:
    @pytest.mark.parametrize(
        "value,precision,expected",
        [(0.125, 2, 0.13), (2.344, 2, 2.34), (2.25, 1, 2.3), (7, 2, 7.0)],
    )
    def test_round_half_up(self, value, precision, expected):
        assert BaseGenerator.round(value, precision) == pytest.approx(expected)

    def test_dates_stay_in_window(self, config, scenario):
        generator = UserGenerator(config, scenario)
        for _ in range(100):
            value = generator.random_date_in_range()
            assert config.start_date <= value < config.end_date
            business = generator.random_business_hour_date()
            assert 8 <= business.hour < 20

    def test_egyptian_phone(self, config, scenario):
        generator = UserGenerator(config, scenario)
        assert all(PHONE_PATTERN.match(generator.egyptian_phone()) for _ in range(50))

    def test_inject_anomalies_rate(self, config, anomaly_heavy):
        generator = UserGenerator(config, anomaly_heavy)
        touched = generator.inject_anomalies(list(range(1000)), lambda item, anomaly: -1)
        share = touched.count(-1) / 1000
        assert 0.3 < share < 0.5

    def test_anomaly_types_follow_scenario(self, config, scenario, anomaly_heavy):
        assert UserGenerator(config, scenario).anomaly_types() == [
            AnomalyType.PAYMENT_DELAY,
            AnomalyType.DELIVERY_DELAY,
        ]
        assert AnomalyType.MAINTENANCE_FAILURE in UserGenerator(
            config, anomaly_heavy
        ).anomaly_types()


class TestUsers:
    def test_count_and_unique_emails(self, users):
        assert len(users) == 5
        assert len({u.email for u in users}) == 5
        assert all(u.email.endswith("@orders.example.com") for u in users)

    def test_roles_and_dates(self, config, users):
        assert all(isinstance(u.role, UserRole) for u in users)
        assert all(u.created_at <= u.updated_at <= config.end_date for u in users)

    def test_deterministic(self, config, scenario):
        first = UserGenerator(config, scenario).generate(10)
        second = UserGenerator(config, scenario).generate(10)
        assert [u.model_dump() for u in first] == [u.model_dump() for u in second]

    def test_email_collisions_get_suffix(self, config, scenario):
        users = UserGenerator(config, scenario).generate(500)
        assert len({u.email for u in users}) == 500


class TestCompanies:
    def test_companies(self, companies):
        assert len(companies) == 10
        for company in companies:
            assert company.delivery_days in ([0, 2, 4], [1, 3, 6])
            assert company.payment_status == payment_status_for_score(
                company.current_payment_score
            )
            assert not (company.machine_owned and company.machine_leased)
            assert (company.lease_monthly_cost is not None) == company.machine_leased

    def test_suspension_only_for_degraded_poor_scores(self, config, anomaly_heavy):
        companies = CompanyGenerator(config, anomaly_heavy).generate(200)
        for company in companies:
            if company.is_suspended:
                assert AnomalyType.PAYMENT_DELAY in company.anomalies
                assert company.payment_status in (
                    CompanyPaymentStatus.POOR,
                    CompanyPaymentStatus.CRITICAL,
                )
                assert company.suspension_reason

    @pytest.mark.parametrize(
        "score,status",
        [
            (95, CompanyPaymentStatus.EXCELLENT),
            (90, CompanyPaymentStatus.EXCELLENT),
            (80, CompanyPaymentStatus.GOOD),
            (65, CompanyPaymentStatus.FAIR),
            (45, CompanyPaymentStatus.POOR),
            (10, CompanyPaymentStatus.CRITICAL),
        ],
    )
    def test_payment_score_bands(self, score, status):
        assert payment_status_for_score(score) == status

    def test_payment_method_override(self, config, scenario_manager):
        profile = scenario_manager.create_custom_scenario(
            "normal-ops", "checks-only", {"profile_overrides": {"payment_methods": ["check"]}}
        )
        companies = CompanyGenerator(config, profile).generate(20)
        assert {c.payment_method for c in companies} == {"check"}


class TestBranches:
    def test_branches_follow_parent(self, companies, branches):
        by_id = {c.id: c for c in companies}
        parents = {b.company_id for b in branches}
        assert len(parents) == 5
        for branch in branches:
            parent = by_id[branch.company_id]
            assert branch.machine_owned == parent.machine_owned
            assert branch.machine_leased == parent.machine_leased
            assert branch.maintenance_location == parent.maintenance_location
            assert branch.created_at >= parent.created_at
            assert 1 <= len(branch.baristas) <= 3
            assert all(b.branch_id == branch.id for b in branch.baristas)

    def test_zero_ratio(self, config, scenario, companies):
        assert CompanyGenerator(config, scenario).generate_branches(companies, 0.0) == []


class TestAddresses:
    def test_one_primary_per_entity(self, config, scenario, companies, branches):
        addresses = AddressGenerator(config, scenario).generate_for_entities(companies, branches)
        primaries = [a for a in addresses if a.type == "primary"]
        assert len(primaries) == len(companies) + len(branches)
        entity_ids = {c.id for c in companies} | {b.id for b in branches}
        assert {a.entity_id for a in addresses} == entity_ids

    def test_warehouse_addresses_have_contacts(self, config, scenario, companies, branches):
        addresses = AddressGenerator(config, scenario).generate_for_entities(companies, branches)
        for address in addresses:
            if address.type == "warehouse":
                assert address.contact_name and address.contact_phone
            else:
                assert address.contact_name is None

    def test_standalone_addresses(self, config, scenario):
        addresses = AddressGenerator(config, scenario).generate(15)
        assert len(addresses) == 15
        assert all(len(a.postal_code) == 5 for a in addresses)


class TestProducts:
    def test_variants_reference_base_products(self, products):
        assert len(products) <= 30
        ids = {p.id for p in products if not p.is_variant}
        for product in products:
            if product.is_variant:
                assert product.parent_product_id in ids
            assert product.price > 0

    def test_by_popularity_sorted(self, products):
        ranked = ProductGenerator.by_popularity(products)
        sold = [p.total_sold for p in ranked]
        assert sold == sorted(sold, reverse=True)

    def test_category_override(self, config, scenario_manager):
        profile = scenario_manager.create_custom_scenario(
            "normal-ops", "grinders", {"profile_overrides": {"product_categories": ["Grinders"]}}
        )
        products = ProductGenerator(config, profile).generate(10)
        assert {p.category for p in products} == {"Grinders"}
