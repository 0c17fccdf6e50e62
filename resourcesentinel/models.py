from __future__ import annotations
from dataclasses import dataclass, field
from typing import Dict, List, Optional

@dataclass(frozen=True)
class Sample:
    ts: int
    component: str
    cpu_pct: Optional[float] = None
    mem_pct: Optional[float] = None
    disk_used_gb: Optional[float] = None
    network_mbps: Optional[float] = None
    process_count: Optional[int] = None
    response_time_ms: Optional[int] = None

@dataclass(frozen=True)
class DiskInfo:
    name: str
    mount_point: str        # "C:\\", "/", "/home" ...
    total_gb: int
    used_gb: int
    free_gb: int
    usage_pct: float
    fs_type: str = ""

    @property
    def component_key(self) -> str:
        return disk_key_for_mount(self.mount_point)

@dataclass(frozen=True)
class Baseline:
    entity: str
    avg_cpu: Optional[float]
    std_cpu: Optional[float]
    avg_mem: Optional[float]
    std_mem: Optional[float]
    avg_response: Optional[float]
    std_response: Optional[float]

@dataclass(frozen=True)
class AlertDecision:
    need_alert: bool
    level: str          # NORMAL|WARNING
    message: str
    suggestions: str = ""

@dataclass(frozen=True)
class Diagnosis:
    category: str
    confidence: int     # 0-100
    evidence: str

@dataclass(frozen=True)
class TrendAnalysis:
    diagnoses: List[Diagnosis]
    analysis_time: int

@dataclass(frozen=True)
class RootCauseResult:
    affected_component: str
    analysis_time: int
    analyzed_components: List[str]
    dependency_chain: List[str]
    root_cause: str
    confidence: float   # 0.0-0.95
    evidence: str
    suggestions: List[str]
    correlations: Dict[str, float] = field(default_factory=dict)


DISK_PREFIX = "Disk-"
ROOT_DISK_LABEL = "root"

def disk_key_for_mount(mount_point: str) -> str:
    """'C:\\' -> 'Disk-C', '/' -> 'Disk-root', '/home' -> 'Disk-home'."""
    label = mount_point.replace(":", "").replace("/", "").replace("\\", "")
    return DISK_PREFIX + (label or ROOT_DISK_LABEL)

def is_disk_key(component: str) -> bool:
    return component.startswith(DISK_PREFIX)

def disk_label(component: str) -> str:
    return component[len(DISK_PREFIX):]
