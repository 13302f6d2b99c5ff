"""HTTP client for the upstream job listing."""

from typing import Any, List, Optional

import requests

from .errors import HttpError, MalformedResponse, NetworkError
from .logger import get_logger
from .normalize import unwrap_envelope
from .retry import RetryError, exponential_backoff, should_retry_http_status

logger = get_logger()


class RetryableStatus(Exception):
    """Internal: an HTTP status worth another attempt."""

    def __init__(self, response: requests.Response):
        self.response = response
        super().__init__(f"HTTP {response.status_code}")


class JobListingClient:
    """
    Fetch raw jobs from the listing API.

    Timeouts, connection errors and retryable statuses are retried with
    exponential backoff before being reported.

    Args:
        api_url: Listing endpoint
        timeout: Per-request timeout in seconds
        limit: Maximum number of raw jobs returned
        max_retries: Retries after the first attempt
        base_delay: Delay before the first retry
    """

    def __init__(
        self,
        api_url: str,
        timeout: float = 15.0,
        limit: Optional[int] = None,
        max_retries: int = 3,
        base_delay: float = 1.0,
    ):
        self.api_url = api_url
        self.timeout = timeout
        self.limit = limit
        self._get = exponential_backoff(
            max_retries=max_retries,
            base_delay=base_delay,
            exceptions=(requests.exceptions.Timeout, requests.exceptions.ConnectionError, RetryableStatus),
            on_retry=self._on_retry,
        )(self._get_once)

    def _get_once(self) -> requests.Response:
        resp = requests.get(self.api_url, timeout=self.timeout)
        if should_retry_http_status(resp.status_code):
            raise RetryableStatus(resp)
        return resp

    def _on_retry(self, attempt: int, error: Exception, delay: float) -> None:
        logger.warning("Fetch failed, retrying", url=self.api_url, attempt=attempt, error=str(error), delay=delay)

    def fetch_job_listings(self) -> List[Any]:
        """
        Fetch the listing and return the raw job records.

        Raises:
            NetworkError: connection failures and timeouts after retries
            HttpError: non-success status
            MalformedResponse: body is not JSON or has no job list
        """
        logger.record_fetch_attempt()
        logger.info("Fetching jobs", url=self.api_url)
        try:
            resp = self._get()
        except RetryError as e:
            cause = e.__cause__
            if isinstance(cause, RetryableStatus):
                status = cause.response.status_code
                logger.record_fetch_failure(f"HTTPError_{status}")
                logger.error("Listing request failed", url=self.api_url, status=status, attempts=e.attempts)
                raise HttpError(status) from e
            logger.record_fetch_failure(type(cause).__name__ if cause else "RetryError")
            logger.error("Listing request failed", url=self.api_url, error=str(e))
            raise NetworkError(f"Could not reach job listing: {cause}") from e
        except requests.exceptions.RequestException as e:
            logger.record_fetch_failure("RequestException")
            logger.error("Listing request error", url=self.api_url, error=str(e))
            raise NetworkError(f"Job listing request error: {e}") from e

        logger.debug("Response status", status=resp.status_code)
        if not resp.ok:
            logger.record_fetch_failure(f"HTTPError_{resp.status_code}")
            logger.error("Listing request failed", url=self.api_url, status=resp.status_code)
            raise HttpError(resp.status_code)

        try:
            payload = resp.json()
        except ValueError as e:
            logger.record_fetch_failure("MalformedResponse")
            logger.error("Listing response is not JSON", url=self.api_url)
            raise MalformedResponse("Job listing response is not valid JSON") from e

        try:
            raw_jobs = unwrap_envelope(payload)
        except MalformedResponse:
            logger.record_fetch_failure("MalformedResponse")
            logger.error("Listing response has no job list", url=self.api_url)
            raise

        if self.limit is not None:
            raw_jobs = raw_jobs[: max(self.limit, 0)]
        logger.record_fetch_success()
        logger.info("Fetched jobs", count=len(raw_jobs))
        return raw_jobs
