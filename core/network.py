"""
HTTP transport for upstream services.
Blocking requests run in the default executor; retry policy lives here.
"""
import asyncio
import functools
from typing import Any, Dict, Optional

import requests
from tenacity import Retrying, retry_if_exception, stop_after_attempt, wait_exponential

from core.exceptions import FetchError
from core.logger import setup_logger

logger = setup_logger(__name__)


def _is_retryable(exc: BaseException) -> bool:
    # ConnectTimeout is both a ConnectionError and a Timeout; timeouts are final
    return isinstance(exc, requests.exceptions.ConnectionError) and not isinstance(
        exc, requests.exceptions.Timeout
    )


def build_query_params(params: Optional[Dict[str, Any]]) -> Dict[str, str]:
    """
    Render query parameters the way the upstream expects them.

    Args:
        params: Raw parameters, ``None`` values are dropped

    Returns:
        String-valued parameters
    """
    query = {}
    for key, value in (params or {}).items():
        if value is None:
            continue
        if isinstance(value, bool):
            query[key] = "true" if value else "false"
        else:
            query[key] = str(value)
    return query


class NetworkService:
    """Thin JSON GET client over a requests session."""

    def __init__(
        self,
        timeout: float,
        retry_attempts: int = 1,
        session: Optional[requests.Session] = None,
    ):
        """
        Initialize network service.

        Args:
            timeout: Per-request timeout in seconds
            retry_attempts: Attempts for connection errors (1 disables retries)
            session: Optional preconfigured session
        """
        self.timeout = timeout
        self.retry_attempts = retry_attempts
        self.session = session or requests.Session()

    async def get(self, url: str, params: Optional[Dict[str, Any]] = None) -> Any:
        """
        GET a JSON document without blocking the event loop.

        Args:
            url: Absolute URL
            params: Query parameters

        Returns:
            Decoded JSON body

        Raises:
            FetchError: On network failure, timeout, non-2xx status or invalid JSON
        """
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(
            None, functools.partial(self._get_with_retry, url, build_query_params(params))
        )

    def _get_with_retry(self, url: str, params: Dict[str, str]) -> Any:
        retrying = Retrying(
            stop=stop_after_attempt(self.retry_attempts),
            wait=wait_exponential(multiplier=0.5, min=0.5, max=5),
            retry=retry_if_exception(_is_retryable),
            reraise=True,
        )
        try:
            return retrying(self._get, url, params)

        except requests.exceptions.Timeout as e:
            logger.error(f"Upstream request timeout after {self.timeout}s: {url}")
            raise FetchError(
                f"Upstream request timeout after {self.timeout}s",
                url=url,
                details={"timeout": self.timeout, "error": str(e)},
            )

        except requests.exceptions.HTTPError as e:
            status_code = getattr(e.response, "status_code", None)
            logger.error(f"Upstream HTTP error {status_code}: {url}")
            raise FetchError(
                f"Upstream returned HTTP error: {status_code}",
                url=url,
                status_code=status_code,
                details={"response_text": getattr(e.response, "text", None)},
            )

        except requests.exceptions.JSONDecodeError as e:
            logger.error(f"Upstream returned invalid JSON: {url}: {e}")
            raise FetchError(f"Upstream returned invalid JSON: {e}", url=url)

        except requests.exceptions.RequestException as e:
            logger.error(f"Upstream request failed: {url}: {e}")
            raise FetchError(f"Failed to connect to upstream: {e}", url=url)

    def _get(self, url: str, params: Dict[str, str]) -> Any:
        logger.debug(f"GET {url} {params}")
        response = self.session.get(url, params=params, timeout=self.timeout)
        response.raise_for_status()
        return response.json()
