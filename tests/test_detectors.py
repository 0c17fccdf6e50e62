"""Tests for the dynamic-baseline threshold detector and the baseline store."""

import threading

import pytest

from resourcesentinel.baselines import BaselineStore, default_baseline
from resourcesentinel.detectors import (
    DynamicThresholdDetector, GENERIC_SUGGESTIONS, LEVEL_NORMAL, LEVEL_WARNING, threshold_for,
)
from resourcesentinel.models import Baseline


@pytest.fixture
def store():
    return BaselineStore()


@pytest.fixture
def detector(store):
    return DynamicThresholdDetector(store)


@pytest.fixture
def service_seeds():
    return [
        Baseline("user-service", 45.0, 15.0, 65.0, 10.0, 120.0, 30.0),
        Baseline("order-service", 50.0, 20.0, 70.0, 15.0, 150.0, 50.0),
    ]


# ── Baseline store ────────────────────────────────────────────────────

class TestBaselineStore:
    def test_unknown_entity_is_seeded_with_defaults(self, store):
        b = store.get_or_create("checkout")
        assert (b.avg_cpu, b.std_cpu) == (50.0, 20.0)
        assert (b.avg_mem, b.std_mem) == (60.0, 15.0)
        assert (b.avg_response, b.std_response) == (100.0, 25.0)
        assert "checkout" in store

    def test_seed_is_never_replaced(self, store):
        first = store.get_or_create("checkout")
        assert store.get_or_create("checkout") is first
        assert len(store) == 1

    def test_explicit_seeds_win_over_defaults(self, service_seeds):
        store = BaselineStore(service_seeds)
        assert store.get_or_create("user-service").avg_cpu == 45.0
        assert store.entities() == ["order-service", "user-service"]

    def test_concurrent_first_observation_creates_one_baseline(self, store):
        n = 16
        barrier = threading.Barrier(n)
        seen = []

        def worker():
            barrier.wait()
            seen.append(store.get_or_create("fresh"))

        threads = [threading.Thread(target=worker) for _ in range(n)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert len(seen) == n
        assert all(b is seen[0] for b in seen)
        assert len(store) == 1


# ── Detector ──────────────────────────────────────────────────────────

class TestCheckAlert:
    def test_quiet_sample_on_new_entity(self, detector, store):
        decision = detector.check_alert("new-service", 40, 40, 50)
        assert decision.need_alert is False
        assert decision.level == LEVEL_NORMAL
        assert decision.suggestions == ""
        assert store.get("new-service") == default_baseline("new-service")

    def test_default_cpu_threshold_is_80(self):
        assert threshold_for(50.0, 20.0) == 80.0

    @pytest.mark.parametrize("cpu,expected", [(81, True), (79, False), (80, False)])
    def test_cpu_threshold_edge(self, detector, cpu, expected):
        assert detector.check_alert("svc", cpu, 10, 10).need_alert is expected

    def test_memory_alone_triggers_warning(self, detector):
        decision = detector.check_alert("svc", 10, 83, 10)   # threshold 82.5
        assert decision.need_alert is True
        assert decision.level == LEVEL_WARNING
        assert decision.suggestions == GENERIC_SUGGESTIONS
        assert "memory usage out of normal range" in decision.message

    def test_message_clauses_in_fixed_order(self, detector):
        decision = detector.check_alert("svc", 95, 10, 200)
        assert decision.message == (
            "Service [svc] anomaly detected: CPU usage out of normal range; "
            "response time out of normal range"
        )

    def test_missing_response_time_is_not_evaluated(self, detector):
        decision = detector.check_alert("svc", 10, 10, None)
        assert decision.need_alert is False

    def test_null_baseline_values_never_alert(self):
        blank = Baseline("blank", None, None, None, None, None, None)
        detector = DynamicThresholdDetector(BaselineStore([blank]))
        assert detector.check_alert("blank", 1000, 1000, 100000).need_alert is False

    def test_seeded_service_uses_its_own_profile(self, service_seeds):
        detector = DynamicThresholdDetector(BaselineStore(service_seeds))
        # user-service cpu threshold 45 + 1.5*15 = 67.5
        assert detector.check_alert("user-service", 70, 10, 10).need_alert is True
        assert detector.check_alert("order-service", 70, 10, 10).need_alert is False
