"""Tests for root cause inference over the dependency topology."""

import pytest

from conftest import Exploding, FakeDisks, FakeSamples, core_samples, disk
from resourcesentinel.models import Sample
from resourcesentinel.rootcause import RootCauseResolver, baseline_for


def resolver(samples=None, disks=None, **kw):
    return RootCauseResolver(FakeSamples(samples), FakeDisks(disks), **kw)


class TestCoreComponents:
    def test_hottest_upstream_component_wins(self):
        r = resolver(core_samples(cpu=90, mem=80, procs=250)).analyze_root_cause("Processes")

        assert r.dependency_chain == ["CPU", "Memory"]
        assert r.root_cause == "CPU"
        assert r.correlations["CPU"] == pytest.approx(0.4)
        assert r.correlations["Memory"] == pytest.approx(0.1)
        assert r.correlations["Processes"] == pytest.approx(100 / 300)
        assert r.confidence == pytest.approx(0.48)
        assert r.evidence == (
            "CPU usage too high: 90.0%; Memory usage too high: 80.0%; Too many processes: 250"
        )
        assert r.suggestions == [
            "Close unnecessary applications to reduce CPU load",
            "Free memory and close unused programs",
            "End unnecessary background processes",
        ]

    def test_self_wins_ties(self):
        r = resolver(core_samples(cpu=80, mem=85)).analyze_root_cause("Memory")
        assert r.correlations["CPU"] == r.correlations["Memory"]
        assert r.root_cause == "Memory"

    def test_healthy_system(self):
        r = resolver(core_samples()).analyze_root_cause("Memory")
        assert r.root_cause == "Memory"
        assert r.confidence == 0.0
        assert r.evidence == "No obvious anomaly found"
        assert r.suggestions == ["System running normally"]

    def test_network_has_no_signal_of_its_own(self):
        r = resolver(core_samples(net=500)).analyze_root_cause("Network")
        assert r.correlations["Network"] == 0.0
        assert r.root_cause == "Network"

    def test_analyzed_components_are_the_observed_ones(self):
        samples = core_samples()
        del samples["Network"]
        r = resolver(samples, [disk("D:")]).analyze_root_cause("CPU")
        assert r.analyzed_components == ["CPU", "Memory", "Processes", "Disk-D"]

    def test_unknown_component_falls_back_to_default_baseline(self):
        assert baseline_for("GPU") == 70.0
        r = resolver(core_samples(cpu=99)).analyze_root_cause("GPU")
        assert r.root_cause == "GPU"
        assert r.dependency_chain == []

    def test_score_is_capped(self):
        r = resolver(core_samples(cpu=100, mem=100, procs=5000)).analyze_root_cause("Processes")
        assert r.correlations["Processes"] == 1.0
        assert r.confidence == 0.95
        assert r.root_cause == "Processes"


class TestDisks:
    def test_baseline_only_disk_score_dominates(self):
        r = resolver(core_samples(cpu=90), [disk("C:\\", used=90)]).analyze_root_cause("Processes")
        assert r.dependency_chain == ["CPU", "Memory", "Disk-C"]
        assert r.correlations["Disk-C"] == 1.0
        assert r.root_cause == "Disk-C"
        assert r.confidence == 0.95

    def test_baseline_only_score_ignores_usage(self):
        low = resolver(core_samples(), [disk("C:\\", used=1)]).analyze_root_cause("Disk-C")
        high = resolver(core_samples(), [disk("C:\\", used=450)]).analyze_root_cause("Disk-C")
        assert low.correlations["Disk-C"] == high.correlations["Disk-C"] == 1.0

    def test_observed_disk_score(self):
        r = resolver(core_samples(cpu=90), [disk("C:\\", used=90)],
                     observed_disk_correlation=True).analyze_root_cause("Processes")
        assert r.correlations["Disk-C"] == pytest.approx(0.2)
        assert r.root_cause == "CPU"

    def test_disk_evidence_uses_display_suffix(self):
        r = resolver(core_samples(), [disk("C:\\", used=120)]).analyze_root_cause("Disk-C")
        assert r.dependency_chain == ["Memory", "CPU"]
        assert r.evidence == "Disk C used: 120GB"
        assert r.suggestions == ["Clean up space on C, delete temporary files"]

    def test_root_mount_gets_a_readable_label(self):
        r = resolver(core_samples(), [disk("/", used=150)]).analyze_root_cause("Processes")
        assert r.dependency_chain == ["CPU", "Memory", "Disk-root"]
        assert r.evidence == "Disk root used: 150GB"
        assert r.suggestions == ["Clean up space on root, delete temporary files"]

    def test_later_chain_member_wins_ties(self):
        r = resolver(core_samples(), [disk("C:\\"), disk("D:")]).analyze_root_cause("Processes")
        assert r.dependency_chain == ["CPU", "Memory", "Disk-C", "Disk-D"]
        assert r.correlations["Disk-C"] == r.correlations["Disk-D"] == 1.0
        assert r.root_cause == "Disk-D"

    def test_disk_below_100gb_is_not_evidence(self):
        r = resolver(core_samples(), [disk("C:\\", used=99)]).analyze_root_cause("Disk-C")
        assert r.evidence == "No obvious anomaly found"


class TestFailures:
    def test_failing_store_degrades(self):
        r = RootCauseResolver(Exploding("db down"), FakeDisks()).analyze_root_cause("Memory")
        assert r.root_cause == "Memory"
        assert r.confidence == 0.6
        assert "db down" in r.evidence
        assert r.analyzed_components == ["CPU", "Memory", "Network", "Processes"]
        assert r.suggestions == ["Check Memory resource usage", "Restart related services"]

    def test_failing_disk_listing_degrades(self):
        r = RootCauseResolver(FakeSamples(core_samples()), Exploding()).analyze_root_cause("Disk-C")
        assert r.confidence == 0.6
        assert r.root_cause == "Disk-C"


@pytest.mark.parametrize("cpu,mem,procs,used,observed", [
    (0, 0, 0, 0, False),
    (100, 100, 10_000, 10_000, False),
    (100, 100, 10_000, 10_000, True),
    (71, 76, 201, 81, True),
])
def test_confidence_bounds(cpu, mem, procs, used, observed):
    r = resolver(core_samples(cpu=cpu, mem=mem, procs=procs), [disk("E:", used=used, total=20_000)],
                 observed_disk_correlation=observed)
    for comp in ("CPU", "Memory", "Network", "Processes", "Disk-E", "Other"):
        result = r.analyze_root_cause(comp)
        assert 0.0 <= result.confidence <= 0.95
        assert all(0.0 <= v <= 1.0 for v in result.correlations.values())


def test_missing_field_scores_zero():
    samples = {"CPU": Sample(ts=1, component="CPU")}
    r = resolver(samples).analyze_root_cause("CPU")
    assert r.correlations == {"CPU": 0.0}
    assert r.evidence == "No obvious anomaly found"
