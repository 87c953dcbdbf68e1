from typing import Callable, Optional

import requests

from sitemapper.domain.http_response import HttpResponse
from sitemapper.exceptions import HttpFetchError


class HttpService:
    """
    HTTP client wrapper for probing and fetching URLs.

    `http_client` (GET) and `head_client` (HEAD) are injected callables with
    the `requests` call signature, so tests can pass mocks.
    """

    def __init__(
        self,
        user_agent: str,
        http_client: Callable,
        timeout: float = 10,
        *,
        head_client: Optional[Callable] = None,
        read_timeout: Optional[float] = None,
    ):
        self.user_agent = user_agent
        self.timeout = timeout
        self.read_timeout = read_timeout if read_timeout is not None else timeout
        self.http_client = http_client
        self.head_client = head_client or requests.head

    def _timeouts(self):
        return (self.timeout, self.read_timeout)

    def fetch(self, url: str) -> HttpResponse:
        """GET `url` and return status code, body text and Content-Type."""
        headers = {"User-Agent": self.user_agent}
        try:
            resp = self.http_client(url, headers=headers, timeout=self._timeouts())
        except requests.exceptions.RequestException as e:
            raise HttpFetchError(url, e) from e
        return self._to_response(resp, text=resp.text)

    def head(self, url: str) -> HttpResponse:
        """HEAD `url` without following redirects so 3xx statuses are observable."""
        headers = {"User-Agent": self.user_agent}
        try:
            resp = self.head_client(url, headers=headers, timeout=self._timeouts(), allow_redirects=False)
        except requests.exceptions.RequestException as e:
            raise HttpFetchError(url, e) from e
        return self._to_response(resp, text="")

    @staticmethod
    def _to_response(resp, *, text: str) -> HttpResponse:
        # Let real exceptions from header access bubble up.
        content_type = None
        content_length = None
        if hasattr(resp, "headers"):
            content_type = resp.headers.get("Content-Type")
            raw_length = resp.headers.get("Content-Length")
            if raw_length is not None and str(raw_length).isdigit():
                content_length = int(raw_length)
        reason = getattr(resp, "reason", "") or ""
        return HttpResponse(resp.status_code, text, content_type, str(reason), content_length)
