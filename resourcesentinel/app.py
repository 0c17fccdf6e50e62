from __future__ import annotations
from PySide6 import QtCore
from dataclasses import asdict
from pathlib import Path
import argparse
import json
import logging
import signal
import sys

from .config import load_config, AppConfig
from .store import Store
from .baselines import BaselineStore
from .collectors import Collector
from .detectors import DynamicThresholdDetector
from .rootcause import RootCauseResolver
from .sampler import MetricSampler
from .analyzer import BackgroundAnalyzer

logger = logging.getLogger("resourcesentinel")


class _SampleRunnable(QtCore.QRunnable):
    """Runs one sampling tick on a pool thread."""
    def __init__(self, sampler: MetricSampler):
        super().__init__()
        self._sampler = sampler
        self.setAutoDelete(True)

    def run(self):
        self._sampler.tick()


class Controller(QtCore.QObject):
    """
    Headless controller:
    - sampling every cfg.sample_interval_ms (pool thread)
    - analysis every cfg.analysis_interval_seconds (background thread)
    """
    def __init__(self, cfg: AppConfig, store: Store, collector: Collector):
        super().__init__()
        self.cfg = cfg
        self.store = store

        self.baselines = BaselineStore()
        self.detector  = DynamicThresholdDetector(self.baselines)
        self.resolver  = RootCauseResolver(
            store, collector, observed_disk_correlation=cfg.observed_disk_correlation,
        )

        self.sampler = MetricSampler(store, self.detector, cfg.host_entity_key, collector)
        self.sampler.alert_ready.connect(self.on_alert)

        self.analyzer = BackgroundAnalyzer(store, cfg, self.resolver)
        self.analyzer.diagnoses_found.connect(self.on_diagnoses)
        self.analyzer.root_causes_found.connect(self.on_root_causes)

        self._pool = QtCore.QThreadPool.globalInstance()

        self.timer = QtCore.QTimer(self)
        self.timer.setInterval(cfg.sample_interval_ms)
        self.timer.timeout.connect(self._schedule_sample)

        logger.info("Controller initialized: sampling every %dms, analysis every %ds",
                    cfg.sample_interval_ms, cfg.analysis_interval_seconds)

    def start(self) -> None:
        self.analyzer.start()
        self.timer.start()
        self._schedule_sample()

    def stop(self) -> None:
        self.timer.stop()
        self.analyzer.stop()
        self._pool.waitForDone()

    def _schedule_sample(self):
        self._pool.start(_SampleRunnable(self.sampler))

    # ── Signal handlers ───────────────────────
    @QtCore.Slot(object)
    def on_alert(self, decision):
        logger.warning("[%s] %s | %s", decision.level, decision.message, decision.suggestions)

    @QtCore.Slot(object)
    def on_diagnoses(self, analysis):
        for d in analysis.diagnoses:
            logger.warning("Diagnosis: %s (confidence %d) - %s", d.category, d.confidence, d.evidence)

    @QtCore.Slot(list)
    def on_root_causes(self, results):
        for r in results:
            logger.warning("Root cause of %s: %s (confidence %.2f) - %s",
                           r.affected_component, r.root_cause, r.confidence, r.evidence)


def run_once(cfg: AppConfig, store: Store, collector: Collector) -> dict:
    """Single sampling + analysis pass; returns a JSON-ready report."""
    baselines = BaselineStore()
    detector  = DynamicThresholdDetector(baselines)
    resolver  = RootCauseResolver(store, collector,
                                  observed_disk_correlation=cfg.observed_disk_correlation)
    sampler   = MetricSampler(store, detector, cfg.host_entity_key, collector)
    analyzer  = BackgroundAnalyzer(store, cfg, resolver)

    samples, alerts = sampler.collect()
    trend, causes = analyzer.analyze_once()
    return {
        "samples": [asdict(s) for s in samples],
        "alerts": [asdict(a) for a in alerts],
        "trend": asdict(trend) if trend else None,
        "root_causes": [asdict(r) for r in causes],
    }


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="resourcesentinel",
                                description="Host resource monitor with baseline alerts and root cause inference")
    p.add_argument("--config", type=Path, default=None, help="path to config.json")
    p.add_argument("--log-level", default="INFO")
    p.add_argument("--once", action="store_true", help="sample and analyse once, print JSON, exit")
    return p


def main(argv=None):
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=getattr(logging, str(args.log_level).upper(), logging.INFO),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )

    cfg = load_config(args.config)
    store = Store(cfg.resolved_db_path())
    collector = Collector()

    if args.once:
        try:
            print(json.dumps(run_once(cfg, store, collector), indent=2, ensure_ascii=False))
        finally:
            store.close()
        return 0

    app = QtCore.QCoreApplication(sys.argv[:1])
    signal.signal(signal.SIGINT, lambda *_: app.quit())
    # Wake the interpreter periodically so SIGINT gets handled
    wake = QtCore.QTimer()
    wake.start(500)
    wake.timeout.connect(lambda: None)

    controller = Controller(cfg, store, collector)
    controller.start()

    code = app.exec()

    controller.stop()
    store.close()
    return code
