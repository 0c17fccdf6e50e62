"""Shared fixtures: in-memory stand-ins for the sample store and the collector."""

from typing import Dict, List, Optional

import pytest

from resourcesentinel.models import Sample, DiskInfo
from resourcesentinel.topology import CPU, MEMORY, NETWORK, PROCESSES


class FakeSamples:
    """latest_sample() over a fixed component -> Sample map."""

    def __init__(self, samples: Optional[Dict[str, Sample]] = None):
        self.samples = samples or {}
        self.calls: List[str] = []

    def latest_sample(self, component: str) -> Optional[Sample]:
        self.calls.append(component)
        return self.samples.get(component)


class FakeDisks:
    def __init__(self, disks: Optional[List[DiskInfo]] = None):
        self.disks = disks or []

    def list_disks(self) -> List[DiskInfo]:
        return list(self.disks)


class Exploding:
    """Collaborator whose every call raises."""

    def __init__(self, message: str = "store unavailable"):
        self.message = message

    def latest_sample(self, component):
        raise RuntimeError(self.message)

    def list_disks(self):
        raise RuntimeError(self.message)


class FakeCollector:
    """Deterministic replacement for the psutil collector."""

    def __init__(self, cpu=40.0, mem=50.0, net=1.5, procs=180, disks=None):
        self.cpu = cpu
        self.mem = mem
        self.net = net
        self.procs = procs
        self.disks = disks if disks is not None else [disk("C:\\", used=120)]

    def component_sample(self, component, ts=None):
        ts = ts or 1_700_000_000
        if component == CPU:
            return Sample(ts=ts, component=CPU, cpu_pct=self.cpu)
        if component == MEMORY:
            return Sample(ts=ts, component=MEMORY, mem_pct=self.mem)
        if component == NETWORK:
            return Sample(ts=ts, component=NETWORK, network_mbps=self.net)
        if component == PROCESSES:
            return Sample(ts=ts, component=PROCESSES, process_count=self.procs)
        raise ValueError(component)

    def list_disks(self):
        return list(self.disks)

    def disk_samples(self, disks, ts=None):
        ts = ts or 1_700_000_000
        return [Sample(ts=ts, component=d.component_key, disk_used_gb=float(d.used_gb))
                for d in disks]


def disk(mount: str, used: int = 50, total: int = 500) -> DiskInfo:
    return DiskInfo(
        name=mount, mount_point=mount, total_gb=total, used_gb=used,
        free_gb=total - used, usage_pct=round(used / total * 100, 1), fs_type="NTFS",
    )


def core_samples(cpu=50.0, mem=50.0, net=1.0, procs=150, ts=1_700_000_000) -> Dict[str, Sample]:
    return {
        CPU: Sample(ts=ts, component=CPU, cpu_pct=cpu),
        MEMORY: Sample(ts=ts, component=MEMORY, mem_pct=mem),
        NETWORK: Sample(ts=ts, component=NETWORK, network_mbps=net),
        PROCESSES: Sample(ts=ts, component=PROCESSES, process_count=procs),
    }


@pytest.fixture
def fake_collector():
    return FakeCollector()


@pytest.fixture(scope="session")
def qapp():
    from PySide6 import QtCore
    return QtCore.QCoreApplication.instance() or QtCore.QCoreApplication([])
