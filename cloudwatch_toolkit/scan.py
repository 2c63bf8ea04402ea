"""
Account x region fan-out.

Each (account, region) pair is an independent task on a bounded thread pool.
A task gets a scoped CloudWatch client, runs a collector against it, and
hands back a partial ScanResult. Partial results are merged in configuration
order, so output does not depend on which task finishes first. A pair that
fails is logged and skipped.
"""
import json
import logging
import threading
from concurrent.futures import ThreadPoolExecutor
from typing import Callable, Dict, Iterable, List, Optional, Tuple

from . import config
from .errors import ToolkitError

logger = logging.getLogger(__name__)


class ScanResult:
    def __init__(self, composite_alarms: Optional[List[Dict]] = None, metric_alarms: Optional[List[Dict]] = None):
        self.composite_alarms: List[Dict] = list(composite_alarms or [])
        self.metric_alarms: List[Dict] = list(metric_alarms or [])
        self.failures: List[Tuple[str, str, str]] = []
        self._lock = threading.Lock()

    def merge(self, other: "ScanResult") -> "ScanResult":
        with self._lock:
            self.composite_alarms.extend(other.composite_alarms)
            self.metric_alarms.extend(other.metric_alarms)
            self.failures.extend(other.failures)
        return self

    def record_failure(self, account_id: str, region: str, reason: str):
        with self._lock:
            self.failures.append((account_id, region, reason))

    @property
    def count(self) -> int:
        return len(self.composite_alarms) + len(self.metric_alarms)

    def __len__(self):
        return self.count

    def __repr__(self):
        return f"ScanResult(composite={len(self.composite_alarms)}, metric={len(self.metric_alarms)}, failures={len(self.failures)})"


ClientFactory = Callable[[str, str], object]
Collector = Callable[[object, str, str], ScanResult]


def pairs(accounts: Iterable[str], regions: Iterable[str]) -> List[Tuple[str, str]]:
    regions = list(regions)
    return [(a, r) for a in accounts for r in regions]


def _scan_pair(account_id: str, region: str, client_factory: ClientFactory, collect: Collector,
               accumulator: ScanResult) -> Optional[ScanResult]:
    try:
        cw = client_factory(account_id, region)
        partial = collect(cw, account_id, region)
        if config.DEBUG_MODE:
            logger.info(json.dumps({"dbg": "pair", "account": account_id, "region": region,
                                    "composite": len(partial.composite_alarms), "metric": len(partial.metric_alarms)}))
        return partial
    except ToolkitError as e:
        logger.error(json.dumps({"msg": "Scan skipped", "account": account_id, "region": region,
                                 "error": type(e).__name__, "detail": str(e)}))
        accumulator.record_failure(account_id, region, str(e))
    except Exception as e:
        logger.exception(f"Unexpected scan failure account={account_id} region={region}")
        accumulator.record_failure(account_id, region, repr(e))
    return None


def scan(accounts: Iterable[str], regions: Iterable[str], client_factory: ClientFactory, collect: Collector,
         max_workers: Optional[int] = None) -> ScanResult:
    """Runs `collect` for every account/region pair and merges what succeeded."""
    todo = pairs(accounts, regions)
    merged = ScanResult()
    if not todo:
        return merged

    workers = max(1, min(max_workers or config.SCAN_CONCURRENCY, len(todo)))
    with ThreadPoolExecutor(max_workers=workers) as ex:
        futures = [ex.submit(_scan_pair, a, r, client_factory, collect, merged) for a, r in todo]
        for fut in futures:
            partial = fut.result()
            if partial is not None:
                merged.merge(partial)

    logger.info(f"Scanned {len(todo)} account/region pairs with {workers} workers: {merged!r}")
    return merged
