"""Scraping adapter for the public teer result pages."""

from __future__ import annotations

import logging
from collections.abc import Mapping

import requests
from requests.adapters import HTTPAdapter
from selectolax.lexbor import LexborHTMLParser
from urllib3.util.retry import Retry

from teerpro.errors import SourceError, SourceErrorKind
from teerpro.sources.base import SourcePair

logger = logging.getLogger(__name__)

USER_AGENT = "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36"


def build_http_session(retries: int, backoff_factor: float = 0.3) -> requests.Session:
    retry = Retry(
        total=retries,
        connect=retries,
        read=retries,
        status=retries,
        backoff_factor=backoff_factor,
        status_forcelist=(429, 500, 502, 503, 504),
        allowed_methods=("GET",),
        raise_on_status=False,
    )
    adapter = HTTPAdapter(max_retries=retry, pool_connections=8, pool_maxsize=8)

    session = requests.Session()
    session.headers.update({"User-Agent": USER_AGENT})
    session.mount("https://", adapter)
    session.mount("http://", adapter)
    return session


class MeghalayaTeerSource:
    """Reads the first `.fr-result` / `.sr-result` text of a game's page."""

    def __init__(
        self,
        urls: Mapping[str, str],
        http: requests.Session | None = None,
        *,
        timeout_seconds: float = 10.0,
        fr_selector: str = ".fr-result",
        sr_selector: str = ".sr-result",
    ) -> None:
        self._urls = dict(urls)
        self._http = http or build_http_session(retries=2)
        self._timeout = timeout_seconds
        self._fr_selector = fr_selector
        self._sr_selector = sr_selector

    def fetch(self, game: str) -> SourcePair | None:
        url = self._urls.get(game)
        if not url:
            raise SourceError(game, SourceErrorKind.UNCONFIGURED, "no source URL configured")

        try:
            resp = self._http.get(url, timeout=self._timeout)
        except requests.Timeout as exc:
            raise SourceError(game, SourceErrorKind.TIMEOUT, str(exc)) from exc
        except requests.RequestException as exc:
            raise SourceError(game, SourceErrorKind.NETWORK, str(exc)) from exc

        if resp.status_code >= 400:
            raise SourceError(game, SourceErrorKind.HTTP_STATUS, f"HTTP {resp.status_code} from {url}")

        return self.parse(game, resp.text)

    def parse(self, game: str, html: str) -> SourcePair | None:
        if not html or not html.strip():
            raise SourceError(game, SourceErrorKind.MALFORMED, "empty response body")

        try:
            tree = LexborHTMLParser(html)
        except Exception as exc:
            raise SourceError(game, SourceErrorKind.MALFORMED, str(exc)) from exc

        fr_node = tree.css_first(self._fr_selector)
        sr_node = tree.css_first(self._sr_selector)
        fr = fr_node.text(strip=True) if fr_node is not None else None
        sr = sr_node.text(strip=True) if sr_node is not None else None

        pair = SourcePair.from_raw(fr, sr)
        logger.debug("Source %s parsed fr=%r sr=%r -> %s", game, fr, sr, pair)
        return pair
