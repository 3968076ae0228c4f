import logging
import time
from typing import Optional

import requests

from .constants import ANTI_BAN_EVERY, ANTI_BAN_PAUSE, HEADERS, REQUEST_TIMEOUT
from .errors import FetchError

logger = logging.getLogger(__name__)


class NetworkManager:
    """Single-attempt HTTP access to the source site.

    Anything with ``fetch_bytes(url) -> bytes`` raising ``FetchError`` can be
    used in its place by the rest of the pipeline.
    """

    def __init__(
        self,
        timeout: float = REQUEST_TIMEOUT,
        session: Optional[requests.Session] = None,
    ):
        self.timeout = timeout
        self.session = session or requests.Session()
        self.session.headers.update(HEADERS)
        self.request_count = 0

    @staticmethod
    def normalize_url(url: str) -> str:
        if "i2.docln.net" in url:
            url = url.replace("i2.docln.net", "i2.hako.vip")
        if not url.startswith("http"):
            url = "https:" + url if url.startswith("//") else "https://" + url
        return url

    def _get(self, url: str) -> requests.Response:
        self.request_count += 1
        if self.request_count % ANTI_BAN_EVERY == 0:
            logger.info(f"Anti-Ban: Pausing for {ANTI_BAN_PAUSE} seconds...")
            time.sleep(ANTI_BAN_PAUSE)

        url = self.normalize_url(url)
        try:
            response = self.session.get(url, timeout=self.timeout)
            response.raise_for_status()
        except requests.RequestException as e:
            raise FetchError(url, e) from e
        return response

    def fetch_text(self, url: str) -> str:
        logger.debug(f"GET {url}")
        return self._get(url).text

    def fetch_bytes(self, url: str) -> bytes:
        logger.debug(f"GET (binary) {url}")
        return self._get(url).content
