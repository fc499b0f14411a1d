"""
Job list polling.

The client polls the job list every 2 seconds while at least one job is
PENDING or PROCESSING, and stops once every job is terminal.
"""

import logging
import time
from typing import Callable, List, Optional, Sequence

from ..jobs.models import ConversionJob

logger = logging.getLogger(__name__)

POLL_INTERVAL_SECONDS = 2.0


def next_poll_interval(
    jobs: Sequence[ConversionJob],
    interval: float = POLL_INTERVAL_SECONDS,
) -> Optional[float]:
    """
    Seconds until the next poll, or None to stop polling.
    """
    if any(job.is_active for job in jobs):
        return interval
    return None


class JobPoller:
    """
    Poll the job list until no job is active.

    Args:
        fetch_jobs: Returns the current job list (e.g. JobClient.list_jobs)
        interval: Seconds between polls while jobs are active
        on_update: Called with every fetched job list
        sleep: Sleep function, replaceable in tests
    """

    def __init__(
        self,
        fetch_jobs: Callable[[], List[ConversionJob]],
        interval: float = POLL_INTERVAL_SECONDS,
        on_update: Optional[Callable[[List[ConversionJob]], None]] = None,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self._fetch_jobs = fetch_jobs
        self.interval = interval
        self._on_update = on_update
        self._sleep = sleep
        self.polls = 0

    def run(self) -> List[ConversionJob]:
        """
        Poll until every job is terminal.

        Returns:
            The last fetched job list
        """
        while True:
            jobs = self._fetch_jobs()
            self.polls += 1
            if self._on_update:
                self._on_update(jobs)

            delay = next_poll_interval(jobs, self.interval)
            if delay is None:
                logger.info(f"All jobs finished after {self.polls} poll(s)")
                return jobs
            self._sleep(delay)
