"""
Output formatting and report generation
"""

import json
import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict

from .. import __version__
from .engine import ScanReport


class OutputEngine:
    """Handle output formatting and report generation"""

    @staticmethod
    def format_json(report: ScanReport, account_id: str = None,
                    metadata: Dict[str, Any] = None) -> Dict[str, Any]:
        """Format a scan report as a JSON document"""

        if metadata is None:
            metadata = {}

        findings = report.findings

        # Calculate summary statistics
        by_status: Dict[str, int] = {}
        by_check: Dict[str, Dict[str, int]] = {}

        for finding in findings:
            status = finding.status.label
            by_status[status] = by_status.get(status, 0) + 1

            counts = by_check.setdefault(finding.check_id, {})
            counts[status] = counts.get(status, 0) + 1

        return {
            "metadata": {
                "tool": "cloudaudit",
                "version": __version__,
                "scan_timestamp": datetime.now(timezone.utc).isoformat(),
                "account_id": account_id,
                **metadata
            },
            "summary": {
                "total_findings": len(findings),
                "checks_run": len(report.results),
                "by_status": by_status,
                "by_check": by_check,
            },
            "errors": dict(report.errors),
            "findings": [finding.to_dict() for finding in findings]
        }

    @staticmethod
    def save_report(report: Dict[str, Any], output_file: str, pretty: bool = True):
        """Save JSON report to file"""
        try:
            output_path = Path(output_file)
            output_path.parent.mkdir(parents=True, exist_ok=True)

            with open(output_path, 'w', encoding='utf-8') as f:
                json.dump(report, f, indent=2 if pretty else None, sort_keys=True, default=str)

            logging.getLogger(__name__).info(f"Report saved to: {output_path}")

        except OSError as e:
            logging.getLogger(__name__).error(f"Error saving report: {str(e)}")
            raise
