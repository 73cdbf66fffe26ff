"""
Core scanning engine that orchestrates security checks
"""

import concurrent.futures
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional

from .cache import CacheSnapshot
from .exceptions import ConfigurationError
from .framework import CheckResult, Finding, SecurityCheck
from .provider import RegionMetadata
from .registry import CheckRegistry

logger = logging.getLogger(__name__)


@dataclass
class ScanReport:
    """Results of every check run in one scan"""
    results: List[CheckResult] = field(default_factory=list)
    errors: Dict[str, str] = field(default_factory=dict)

    @property
    def findings(self) -> List[Finding]:
        return [finding for result in self.results for finding in result.findings]

    @property
    def source(self) -> Dict[str, Any]:
        return {result.check_id: result.source for result in self.results}


class ScanEngine:
    """Core scanning engine that orchestrates security checks"""

    def __init__(self, registry: CheckRegistry, regions: Optional[RegionMetadata] = None,
                 max_workers: int = 5):
        self.registry = registry
        self.regions = regions
        self.max_workers = max_workers

    def select_checks(self, check_ids: List[str] = None,
                      categories: List[str] = None) -> List[SecurityCheck]:
        if check_ids:
            return [self.registry.get_check_strict(check_id) for check_id in check_ids]
        if categories:
            checks = []
            for category in categories:
                checks.extend(self.registry.get_checks_by_category(category))
            return checks
        return self.registry.get_all_checks()

    def run_scan(self, cache: CacheSnapshot, settings: Optional[Mapping[str, str]] = None,
                 check_ids: List[str] = None, categories: List[str] = None,
                 parallel: bool = True) -> ScanReport:
        """Run the selected checks against a cache snapshot"""

        checks = self.select_checks(check_ids, categories)
        report = ScanReport()

        if not checks:
            logger.warning("No checks selected for scanning")
            return report

        regions = self.regions or RegionMetadata.from_settings(settings)
        logger.info(f"Running {len(checks)} security checks...")

        def run_check(check: SecurityCheck) -> CheckResult:
            return check.run(cache, settings, regions=regions, parallel=parallel)

        if parallel and len(checks) > 1:
            # Run checks in parallel
            with concurrent.futures.ThreadPoolExecutor(max_workers=self.max_workers) as executor:
                future_to_check = {executor.submit(run_check, check): check
                                   for check in checks}

                for future in concurrent.futures.as_completed(future_to_check):
                    check = future_to_check[future]
                    self._collect(report, check, future.result)
        else:
            # Run checks sequentially
            for check in checks:
                self._collect(report, check, lambda: run_check(check))

        # Report order follows selection order, not completion order
        order = {check.check_id: index for index, check in enumerate(checks)}
        report.results.sort(key=lambda result: order[result.check_id])

        logger.info(f"Scan completed. Total findings: {len(report.findings)}")
        return report

    @staticmethod
    def _collect(report: ScanReport, check: SecurityCheck, get_result):
        try:
            result = get_result()
        except ConfigurationError as e:
            logger.error(f"Check {check.check_id} is misconfigured: {e}")
            report.errors[check.check_id] = str(e)
            return
        except Exception as e:
            logger.exception(f"Check {check.check_title} failed")
            report.errors[check.check_id] = f"Check failed: {e}"
            return

        report.results.append(result)
        logger.info(f"Completed check: {check.check_title} "
                    f"({len(result.findings)} findings)")
