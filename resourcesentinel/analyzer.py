from __future__ import annotations
import logging
import time
from PySide6 import QtCore
from typing import List, Optional, Tuple

from .config import AppConfig
from .diagnoser import TrendDiagnoser
from .models import TrendAnalysis, RootCauseResult
from .rootcause import RootCauseResolver, baseline_for, is_abnormal
from .store import Store

logger = logging.getLogger(__name__)


class BackgroundAnalyzer(QtCore.QThread):
    """
    Periodic analysis on its own thread, off the sampling loop.

    Tasks per cycle:
    - Trend diagnosis over the bounded recent host history
    - Root cause inference for every component whose latest sample is
      above its component baseline
    - Retention pruning of old samples
    """

    diagnoses_found   = QtCore.Signal(object)   # TrendAnalysis
    root_causes_found = QtCore.Signal(list)     # List[RootCauseResult]

    def __init__(self, store: Store, cfg: AppConfig, resolver: RootCauseResolver,
                 diagnoser: Optional[TrendDiagnoser] = None):
        super().__init__()
        self.store     = store
        self.cfg       = cfg
        self.resolver  = resolver
        self.diagnoser = diagnoser or TrendDiagnoser()

        self._running = True
        self._analysis_interval = max(1, int(cfg.analysis_interval_seconds))

    def stop(self) -> None:
        self._running = False
        self.wait()

    def run(self) -> None:
        logger.info("Background analyzer started, interval %ss", self._analysis_interval)
        while self._running:
            # Wait for the interval, checking every second for shutdown
            for _ in range(self._analysis_interval):
                if not self._running:
                    return
                time.sleep(1)

            try:
                start = time.time()
                trend, causes = self.analyze_once()
                logger.info("Analysis cycle done in %.2fs: %d diagnoses, %d root causes",
                            time.time() - start,
                            len(trend.diagnoses) if trend else 0, len(causes))
            except Exception:
                logger.exception("Error during analysis cycle")
                continue

            if trend is not None and trend.diagnoses:
                self.diagnoses_found.emit(trend)
            if causes:
                self.root_causes_found.emit(causes)

    def analyze_once(self) -> Tuple[Optional[TrendAnalysis], List[RootCauseResult]]:
        trend  = self._diagnose()
        causes = self._root_causes()
        self.store.prune_before(int(time.time()) - self.cfg.retention_days * 86400)
        return trend, causes

    def _diagnose(self) -> Optional[TrendAnalysis]:
        now = int(time.time())
        history = self.store.samples_in_range(
            now - self.cfg.history_window_seconds, now, component=self.cfg.host_entity_key,
        )[-self.cfg.history_limit:]
        if not history:
            logger.debug("No host history yet, skipping trend diagnosis")
            return None
        return self.diagnoser.analyze(history[-1], history)

    def _root_causes(self) -> List[RootCauseResult]:
        results: List[RootCauseResult] = []
        for comp in self.store.list_components():
            if comp == self.cfg.host_entity_key:
                continue
            sample = self.store.latest_sample(comp)
            if sample is None or not is_abnormal(comp, sample, baseline_for(comp)):
                continue
            results.append(self.resolver.analyze_root_cause(comp))
        return results
