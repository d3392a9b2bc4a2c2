"""Rate-limited JSON fetch client for the upstream sports API"""
import threading
import time
from typing import Any, Callable, Optional
import requests

from ..utils.logger import setup_logger

logger = setup_logger(__name__)


class RateLimiter:
    """Enforces a minimum spacing between consecutive requests across threads"""

    def __init__(
        self,
        min_interval: float = 0.05,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], None] = time.sleep
    ):
        self.min_interval = min_interval
        self._clock = clock
        self._sleep = sleep
        self._lock = threading.Lock()
        self._last_request = None

    def wait(self):
        """Block until the next request is allowed"""
        with self._lock:
            if self._last_request is not None:
                elapsed = self._clock() - self._last_request
                if elapsed < self.min_interval:
                    self._sleep(self.min_interval - elapsed)
            self._last_request = self._clock()


class FetchClient:
    """HTTP GET client returning parsed JSON or None"""

    def __init__(
        self,
        session: Optional[requests.Session] = None,
        rate_limiter: Optional[RateLimiter] = None,
        retries: int = 2,
        retry_delay: float = 0.5,
        timeout: int = 30,
        sleep: Callable[[float], None] = time.sleep
    ):
        """
        Initialize fetch client

        Args:
            session: requests session to reuse connections
            rate_limiter: Shared limiter; one per process
            retries: Total attempts per URL
            retry_delay: Base delay in seconds between attempts
            timeout: Per-request timeout in seconds
            sleep: Sleep function (injected for tests)
        """
        self.session = session or requests.Session()
        self.session.headers.setdefault("User-Agent", "fight-notifier/1.0")
        self.rate_limiter = rate_limiter or RateLimiter()
        self.retries = max(1, retries)
        self.retry_delay = retry_delay
        self.timeout = timeout
        self._sleep = sleep

    def fetch_json(self, url: str) -> Optional[Any]:
        """
        Fetch a URL and decode its JSON body

        Never raises: after the retry budget is spent the caller gets None and
        should treat the resource as temporarily unavailable.

        Args:
            url: Absolute URL

        Returns:
            Parsed JSON, or None if every attempt failed
        """
        short_url = url[:80]
        for attempt in range(self.retries):
            logger.debug(f"Attempt {attempt + 1}/{self.retries} for {short_url}")
            try:
                self.rate_limiter.wait()
                response = self.session.get(url, timeout=self.timeout)

                if response.status_code == 429:
                    wait_time = self.retry_delay * 2
                    logger.info(f"Rate limited on {short_url}, waiting {wait_time:.1f}s")
                    self._sleep(wait_time)
                    continue

                response.raise_for_status()
                data = response.json()
                logger.debug(f"Success for {short_url}")
                return data

            except (requests.RequestException, ValueError) as e:
                logger.warning(f"Attempt {attempt + 1}/{self.retries} failed for {short_url}: {e}")
                if attempt < self.retries - 1:
                    self._sleep(self.retry_delay * (attempt + 1))

        logger.error(f"All {self.retries} attempts failed for {short_url}")
        return None

    def close(self):
        """Close the underlying session"""
        self.session.close()
