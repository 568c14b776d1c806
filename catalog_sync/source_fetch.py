import logging
from typing import Optional

import httpx

from catalog_sync.catalog_store import validate_catalog
from catalog_sync.catalog_tree import Catalog
from catalog_sync.errors import CatalogFormatError, FetchError

logger = logging.getLogger(__name__)


class SourceFetcher:
    """Downloads the live source catalog over HTTP."""

    def __init__(self, timeout: float = 30.0, transport: Optional[httpx.AsyncBaseTransport] = None):
        self.timeout = timeout
        self.transport = transport

    async def fetch(self, url: str) -> Catalog:
        """
        Fetch and validate the catalog served at ``url``.

        Args:
            url: Location of the live source catalog.

        Returns:
            Catalog: The decoded catalog.

        Raises:
            FetchError: On transport errors, non-success statuses or a body
                that is not a catalog.
        """
        logger.info(f"Fetching live source catalog from {url}")
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
                response = await client.get(url)
                response.raise_for_status()
                document = response.json()
        except httpx.HTTPStatusError as status_exc:
            raise FetchError(
                f"Failed to fetch live source: {status_exc.response.status_code} "
                f"{status_exc.response.reason_phrase}"
            ) from status_exc
        except httpx.HTTPError as http_exc:
            raise FetchError(f"Failed to fetch live source from {url}: {http_exc}") from http_exc
        except ValueError as json_exc:
            raise FetchError(f"Live source at {url} is not valid JSON: {json_exc}") from json_exc

        try:
            return validate_catalog(document, url)
        except CatalogFormatError as format_exc:
            raise FetchError(str(format_exc)) from format_exc
