"""
Concurrent per-region execution with failure isolation
"""

import concurrent.futures
import logging
from typing import Callable, Iterable, List, Optional

logger = logging.getLogger(__name__)

DEFAULT_MAX_WORKERS = 10

ErrorHandler = Callable[[str, BaseException], None]


class RegionExecutor:
    """Run an evaluation function once per region and wait for all of them.

    An exception raised for one region is handed to ``on_error`` and never
    stops the other regions. ``run`` returns only after every dispatched
    evaluation has finished.
    """

    def __init__(self, max_workers: int = DEFAULT_MAX_WORKERS, parallel: bool = True):
        self.max_workers = max(1, max_workers)
        self.parallel = parallel

    def run(self, regions: Iterable[str], evaluate: Callable[[str], None],
            on_error: Optional[ErrorHandler] = None) -> List[str]:
        """Evaluate every region; returns the regions that raised"""
        regions = list(regions)
        if not regions:
            return []

        failed: List[str] = []

        def handle(region: str, exc: BaseException):
            failed.append(region)
            if on_error is not None:
                on_error(region, exc)
            else:
                logger.error(f"Evaluation failed in {region}: {exc}")

        if not self.parallel or len(regions) == 1:
            for region in regions:
                try:
                    evaluate(region)
                except Exception as e:
                    handle(region, e)
            return failed

        workers = min(self.max_workers, len(regions))
        with concurrent.futures.ThreadPoolExecutor(max_workers=workers) as executor:
            future_to_region = {executor.submit(evaluate, region): region
                                for region in regions}

            for future in concurrent.futures.as_completed(future_to_region):
                region = future_to_region[future]
                try:
                    future.result()
                    logger.debug(f"Completed evaluation for {region}")
                except Exception as e:
                    handle(region, e)

        return failed
