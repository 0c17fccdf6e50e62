from __future__ import annotations
import logging
import os
import sys
import time
import psutil
from typing import List, Optional

from .models import Sample, DiskInfo
from .topology import CPU, MEMORY, NETWORK, PROCESSES

logger = logging.getLogger(__name__)

GB = 1024 ** 3
MB = 1024 ** 2

_SKIP_FS_TYPES    = ("tmpfs", "ramfs", "devtmpfs", "squashfs", "overlay")
_SKIP_MOUNT_PARTS = ("/proc", "/sys", "/dev", "/snap", "/run")
_MIN_DISK_BYTES   = 100 * MB     # smaller volumes are virtual / pseudo


def now_ts() -> int:
    return int(time.time())


# ──────────────────────────────────────────────
# Collector – host CPU / memory / disk / network / processes
# ──────────────────────────────────────────────
class Collector:
    def __init__(self):
        # warmup: the first interval=None call always returns 0.0
        psutil.cpu_percent(interval=None)
        self._last_net = psutil.net_io_counters()
        self._last_ts  = time.time()

    # ── signals ───────────────────────────────
    def cpu_percent(self) -> float:
        return round(float(psutil.cpu_percent(interval=None)), 2)

    def memory_percent(self) -> float:
        mem = psutil.virtual_memory()
        used = mem.total - mem.available
        return round(used * 100.0 / mem.total, 2) if mem.total else 0.0

    def network_mbps(self) -> float:
        """Combined send + receive throughput since the previous call."""
        cur_net = psutil.net_io_counters()
        t  = time.time()
        dt = max(1.0, t - self._last_ts)
        sent = cur_net.bytes_sent - self._last_net.bytes_sent
        recv = cur_net.bytes_recv - self._last_net.bytes_recv
        self._last_net = cur_net
        self._last_ts  = t
        return round(max(0.0, (sent + recv) / dt / MB), 2)

    def process_count(self) -> int:
        return len(psutil.pids())

    # ── disks ─────────────────────────────────
    def list_disks(self) -> List[DiskInfo]:
        disks: List[DiskInfo] = []
        try:
            partitions = psutil.disk_partitions(all=False)
        except Exception as e:
            logger.warning("Partition scan failed (%s), falling back to root mount", e)
            return self._fallback_disks()

        seen = set()
        for part in partitions:
            if part.mountpoint in seen:
                continue
            try:
                usage = psutil.disk_usage(part.mountpoint)
            except (PermissionError, OSError):
                continue
            if should_skip_disk(part.fstype, part.mountpoint, usage.total):
                continue
            seen.add(part.mountpoint)
            disks.append(_disk_info(part.device, part.mountpoint, usage, part.fstype))

        disks.sort(key=lambda d: d.mount_point)
        logger.debug("Detected %d disk partition(s)", len(disks))
        return disks

    def _fallback_disks(self) -> List[DiskInfo]:
        root = os.path.abspath(os.sep) if sys.platform.startswith("win") else "/"
        try:
            usage = psutil.disk_usage(root)
        except OSError as e:
            logger.warning("Root mount unreadable: %s", e)
            return []
        return [_disk_info("System", root, usage, "")]

    # ── samples ───────────────────────────────
    def component_sample(self, component: str, ts: Optional[int] = None) -> Sample:
        """Fresh sample for one core component, only its own field populated."""
        ts = ts or now_ts()
        if component == CPU:
            return Sample(ts=ts, component=CPU, cpu_pct=self.cpu_percent())
        if component == MEMORY:
            return Sample(ts=ts, component=MEMORY, mem_pct=self.memory_percent())
        if component == NETWORK:
            return Sample(ts=ts, component=NETWORK, network_mbps=self.network_mbps())
        if component == PROCESSES:
            return Sample(ts=ts, component=PROCESSES, process_count=self.process_count())
        raise ValueError(f"unknown component: {component}")

    def disk_samples(self, disks: List[DiskInfo], ts: Optional[int] = None) -> List[Sample]:
        ts = ts or now_ts()
        return [Sample(ts=ts, component=d.component_key, disk_used_gb=float(d.used_gb))
                for d in disks]


# ──────────────────────────────────────────────
# Helpers
# ──────────────────────────────────────────────
def should_skip_disk(fs_type: str, mount_point: str, total_bytes: int) -> bool:
    fs_type = (fs_type or "").lower()
    mount   = mount_point.lower()
    return (
        any(t in fs_type for t in _SKIP_FS_TYPES)
        or any(mount.startswith(p) for p in _SKIP_MOUNT_PARTS)
        or total_bytes < _MIN_DISK_BYTES
    )


def _disk_info(name: str, mount_point: str, usage, fs_type: str) -> DiskInfo:
    total_gb = usage.total // GB
    free_gb  = usage.free // GB
    used_gb  = usage.used // GB
    pct = used_gb / total_gb * 100 if total_gb > 0 else 0.0
    return DiskInfo(
        name=name, mount_point=mount_point,
        total_gb=int(total_gb), used_gb=int(used_gb), free_gb=int(free_gb),
        usage_pct=round(pct, 1), fs_type=fs_type,
    )
