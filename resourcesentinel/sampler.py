from __future__ import annotations
import logging
from typing import List, Optional, Tuple
from PySide6 import QtCore

from .collectors import Collector, now_ts
from .detectors import DynamicThresholdDetector
from .models import Sample, AlertDecision
from .store import Store
from .topology import CORE_COMPONENTS, CPU, MEMORY, NETWORK, PROCESSES

logger = logging.getLogger(__name__)


class MetricSampler(QtCore.QObject):
    """
    One collection pass per tick:
    - core components (CPU, Memory, Network, Processes)
    - every visible disk
    - one host-level aggregate sample
    Everything is written to the store in a single batch, then every sample
    is checked against the dynamic baseline of its own component (the host
    aggregate under the host key). Each decision that needs an alert is
    emitted on its own.
    """

    samples_ready = QtCore.Signal(list)     # List[Sample]
    alert_ready   = QtCore.Signal(object)   # AlertDecision, one per alerting sample

    def __init__(self, store: Store, detector: DynamicThresholdDetector,
                 host_entity_key: str = "System",
                 collector: Optional[Collector] = None):
        super().__init__()
        self.store     = store
        self.detector  = detector
        self.host_key  = host_entity_key
        self.collector = collector or Collector()

    @QtCore.Slot()
    def tick(self) -> None:
        try:
            samples, alerts = self.collect()
        except Exception:
            logger.exception("Sampling tick failed")
            return
        self.samples_ready.emit(samples)
        for decision in alerts:
            self.alert_ready.emit(decision)

    def collect(self) -> Tuple[List[Sample], List[AlertDecision]]:
        ts = now_ts()
        samples: List[Sample] = [self.collector.component_sample(c, ts) for c in CORE_COMPONENTS]
        disks = self.collector.list_disks()
        samples.extend(self.collector.disk_samples(disks, ts))

        by_comp = {s.component: s for s in samples}
        host = Sample(
            ts=ts, component=self.host_key,
            cpu_pct=by_comp[CPU].cpu_pct,
            mem_pct=by_comp[MEMORY].mem_pct,
            # largest used volume stands for the host's disk signal
            disk_used_gb=max((float(d.used_gb) for d in disks), default=None),
            network_mbps=by_comp[NETWORK].network_mbps,
            process_count=by_comp[PROCESSES].process_count,
        )
        samples.append(host)
        self.store.add_samples_batch(samples)

        alerts: List[AlertDecision] = []
        for s in samples:
            decision = self.detector.check_alert(s.component, s.cpu_pct, s.mem_pct, s.response_time_ms)
            if decision.need_alert:
                alerts.append(decision)
        logger.debug("Collected %d samples (cpu=%.1f mem=%.1f), %d alerts",
                     len(samples), host.cpu_pct or 0.0, host.mem_pct or 0.0, len(alerts))
        return samples, alerts
