"""
Unit tests for the referential integrity validator and run metrics.
"""

import json

import pytest

from order_datagen.shared.metrics import MetricsCollector
from order_datagen.shared.validators import ReferentialIntegrityValidator


@pytest.fixture
def dataset(users, companies, branches, products, orders):
    return {
        "users": users,
        "companies": companies,
        "branches": branches,
        "products": products,
        "orders": orders,
    }


class TestReferentialIntegrity:
    def test_clean_dataset(self, dataset):
        assert ReferentialIntegrityValidator().validate_dataset(dataset) == []

    def test_dangling_company_reported(self, dataset, caplog):
        broken = dataset["orders"][0].model_copy(update={"company_id": "missing"})
        dataset["orders"] = [broken, *dataset["orders"][1:]]

        violations = ReferentialIntegrityValidator().validate_dataset(dataset)

        assert len(violations) == 1
        assert violations[0].startswith("orders.company_id: 1 dangling")
        assert broken.id in violations[0]
        assert "Referential integrity" in caplog.text

    def test_dangling_refund(self, dataset, config, scenario, orders):
        from order_datagen.generators.entities import RefundGenerator

        generator = RefundGenerator(config, scenario, orders)
        refunds = generator.generate(100)
        if not refunds:
            pytest.skip("no refunds generated for this seed")
        dataset["returns"] = generator.returns[1:]
        dataset["refunds"] = refunds

        violations = ReferentialIntegrityValidator().validate_dataset(dataset)
        assert any(v.startswith("refunds.return_id") for v in violations)

    def test_branch_is_optional(self):
        validator = ReferentialIntegrityValidator()
        assert validator.validate_branch_fk(None)
        assert not validator.validate_branch_fk("unknown")

    def test_site_can_be_company(self):
        validator = ReferentialIntegrityValidator()
        validator.register_company_ids(["c1"])
        validator.register_branch_ids(["b1"])
        assert validator.validate_site_fk("c1")
        assert validator.validate_site_fk("b1")
        assert not validator.validate_site_fk("x")

    def test_summary(self, dataset):
        validator = ReferentialIntegrityValidator()
        validator.register_dataset(dataset)
        summary = validator.get_validation_summary()
        assert summary["users"] == 5
        assert summary["companies"] == 10
        assert summary["returns"] == 0


class TestMetricsCollector:
    @pytest.fixture
    def collector(self):
        collector = MetricsCollector("run-1", "normal-ops")
        collector.record_generation("orders", 100, 12.5)
        collector.record_generation("orders", 50, 2.5)
        collector.record_generation("users", 5, 1.0)
        return collector

    def test_totals(self, collector):
        metrics = collector.get_metrics()
        assert metrics["total_records"] == 155
        assert metrics["entity_timings"]["orders"] == pytest.approx(15.0)
        assert metrics["error_rate"] == 0.0
        assert metrics["peak_memory_mb"] > 0
        assert collector.get_record_counts()["orders"] == 150

    def test_errors(self, collector):
        collector.record_error("payments", ValueError("boom"))
        collector.record_error("payments", ValueError("boom"))
        assert collector.get_error_summary() == {"payments:ValueError": 2}
        assert collector.get_metrics()["error_rate"] == pytest.approx(2 / 155)

    def test_json_export(self, collector):
        collector.complete()
        exported = json.loads(collector.export_metrics("json"))
        assert exported["run_id"] == "run-1"
        assert exported["scenario"] == "normal-ops"
        assert exported["total_records"] == 155

    def test_prometheus_export(self, collector):
        text = collector.export_metrics("prometheus")
        assert "mock_data_total_records" in text
        assert 'entity="orders"' in text
        assert "mock_data_entity_duration_ms" in text

    def test_repeated_prometheus_exports(self, collector):
        collector.complete()
        assert collector.export_metrics("prometheus") == collector.export_metrics("prometheus")

    def test_unknown_format(self, collector):
        with pytest.raises(ValueError, match="Unsupported"):
            collector.export_metrics("xml")

    def test_reset(self, collector):
        collector.reset("run-2", "peak-season")
        metrics = collector.get_metrics()
        assert metrics["run_id"] == "run-2"
        assert metrics["total_records"] == 0
