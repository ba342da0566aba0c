"""HTTP session with retries for remote requirements files.

Requirements files may be referenced by ``https://`` URL, either directly
or through nested ``-r``/``-c`` directives. Transient server errors and
connection failures are retried with exponential backoff by urllib3; every
request gets a default timeout unless the caller passes one.
"""

from __future__ import annotations

import logging
import typing

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

logger = logging.getLogger(__name__)

DEFAULT_RETRY_CONFIG: dict[str, typing.Any] = {
    "total": 5,
    "backoff_factor": 1.0,
    "status_forcelist": [429, 500, 502, 503, 504],
    "allowed_methods": ["GET", "HEAD"],
    "raise_on_status": False,
}


class RetryHTTPAdapter(HTTPAdapter):
    """HTTP adapter with urllib3 retries and a default timeout."""

    def __init__(
        self,
        retry_config: dict[str, typing.Any] | None = None,
        timeout: float = 60.0,
        **kwargs: typing.Any,
    ):
        self.timeout = timeout
        config = DEFAULT_RETRY_CONFIG | (retry_config or {})
        retry_strategy = Retry(
            total=int(config["total"]),
            backoff_factor=float(config["backoff_factor"]),
            status_forcelist=list(config["status_forcelist"]),
            allowed_methods=list(config["allowed_methods"]),
            raise_on_status=bool(config["raise_on_status"]),
        )
        super().__init__(max_retries=retry_strategy, **kwargs)

    def send(
        self,
        request: requests.PreparedRequest,
        stream: bool = False,
        timeout: float | tuple[float, float] | tuple[float, None] | None = None,
        verify: bool | str = True,
        cert: bytes | str | tuple[bytes | str, bytes | str] | None = None,
        proxies: typing.Mapping[str, str] | None = None,
        **kwargs: typing.Any,
    ) -> requests.Response:
        if timeout is None:
            timeout = self.timeout
        logger.debug("fetching %s", request.url)
        return super().send(
            request,
            stream=stream,
            timeout=timeout,
            verify=verify,
            cert=cert,
            proxies=proxies,
            **kwargs,
        )


def create_retry_session(
    retry_config: dict[str, typing.Any] | None = None,
    timeout: float = 60.0,
) -> requests.Session:
    """Create a requests Session with retry capabilities.

    Args:
        retry_config: Overrides for DEFAULT_RETRY_CONFIG.
        timeout: Default timeout for requests in seconds.
    """
    session = requests.Session()
    adapter = RetryHTTPAdapter(retry_config=retry_config, timeout=timeout)

    session.mount("http://", adapter)
    session.mount("https://", adapter)

    return session
