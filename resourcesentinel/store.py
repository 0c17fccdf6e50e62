from __future__ import annotations
import sqlite3
import threading
from pathlib import Path
from typing import Optional, List, Tuple, Any

from .config import ensure_dirs
from .models import Sample

SCHEMA = """
PRAGMA journal_mode=WAL;

CREATE TABLE IF NOT EXISTS samples (
  id               INTEGER PRIMARY KEY AUTOINCREMENT,
  ts               INTEGER NOT NULL,
  component        TEXT NOT NULL,   -- "CPU", "Memory", "Disk-C", "System" ...
  cpu_pct          REAL,
  mem_pct          REAL,
  disk_used_gb     REAL,
  network_mbps     REAL,
  process_count    INTEGER,
  response_time_ms INTEGER
);

CREATE INDEX IF NOT EXISTS idx_samples_component_ts ON samples(component, ts DESC);
CREATE INDEX IF NOT EXISTS idx_samples_ts ON samples(ts);
"""

_COLUMNS = "ts,component,cpu_pct,mem_pct,disk_used_gb,network_mbps,process_count,response_time_ms"


def _row(s: Sample) -> Tuple[Any, ...]:
    return (s.ts, s.component, s.cpu_pct, s.mem_pct, s.disk_used_gb,
            s.network_mbps, s.process_count, s.response_time_ms)


def _sample(row: Tuple[Any, ...]) -> Sample:
    ts, component, cpu, mem, disk, net, procs, resp = row
    return Sample(ts=ts, component=component, cpu_pct=cpu, mem_pct=mem,
                  disk_used_gb=disk, network_mbps=net, process_count=procs,
                  response_time_ms=resp)


class Store:
    """
    Durable sample history keyed by component name and timestamp.

    One connection shared by the sampler pool thread and the analyzer
    thread; every statement runs under ``_lock``.
    """

    def __init__(self, db_path: str):
        if db_path != ":memory:":
            ensure_dirs(Path(db_path).parent)
        self.db_path = db_path
        self._lock = threading.Lock()
        self._conn = sqlite3.connect(self.db_path, check_same_thread=False)
        self._conn.executescript(SCHEMA)
        self._conn.commit()

    def close(self) -> None:
        with self._lock:
            self._conn.close()

    # ── writes ────────────────────────────────
    def add_sample(self, s: Sample) -> None:
        with self._lock:
            self._conn.execute(f"INSERT INTO samples({_COLUMNS}) VALUES(?,?,?,?,?,?,?,?)", _row(s))
            self._conn.commit()

    def add_samples_batch(self, samples: List[Sample]) -> None:
        """Batch insert with single commit."""
        if not samples:
            return
        with self._lock:
            self._conn.executemany(
                f"INSERT INTO samples({_COLUMNS}) VALUES(?,?,?,?,?,?,?,?)",
                [_row(s) for s in samples],
            )
            self._conn.commit()

    def prune_before(self, ts: int) -> int:
        """Delete samples older than *ts*; returns the number of rows removed."""
        with self._lock:
            cur = self._conn.execute("DELETE FROM samples WHERE ts < ?", (ts,))
            self._conn.commit()
            return cur.rowcount

    # ── reads ─────────────────────────────────
    def latest_sample(self, component: str) -> Optional[Sample]:
        with self._lock:
            cur = self._conn.execute(
                f"SELECT {_COLUMNS} FROM samples WHERE component=? ORDER BY ts DESC, id DESC LIMIT 1",
                (component,),
            )
            row = cur.fetchone()
        return _sample(row) if row else None

    def samples_in_range(self, start: int, end: int,
                         component: Optional[str] = None) -> List[Sample]:
        """Samples with start <= ts <= end, oldest first."""
        sql = f"SELECT {_COLUMNS} FROM samples WHERE ts BETWEEN ? AND ?"
        args: Tuple[Any, ...] = (start, end)
        if component is not None:
            sql += " AND component=?"
            args += (component,)
        sql += " ORDER BY ts ASC, id ASC"
        with self._lock:
            rows = self._conn.execute(sql, args).fetchall()
        return [_sample(r) for r in rows]

    def list_components(self) -> List[str]:
        with self._lock:
            rows = self._conn.execute(
                "SELECT DISTINCT component FROM samples ORDER BY component"
            ).fetchall()
        return [r[0] for r in rows]
