"""Token metadata fetching and normalization.

Metadata documents follow no enforced schema. ``normalize_metadata`` maps any
JSON document onto ``NormalizedMetadata`` without ever failing: absent or
non-string fields become empty strings, a missing or non-list ``attributes``
becomes an empty list.
"""

from dataclasses import dataclass
from typing import Any

import httpx
import structlog
from pydantic import BaseModel, Field

from ark_indexer.services.exceptions import MetadataFetchError

logger = structlog.get_logger()


class MetadataAttribute(BaseModel):
    """Single trait of a token."""

    trait_type: str = ""
    value: str = ""
    display_type: str = ""


class NormalizedMetadata(BaseModel):
    """Canonical token metadata, independent of the source schema."""

    description: str = ""
    external_url: str = ""
    image: str = ""
    name: str = ""
    attributes: list[MetadataAttribute] = Field(default_factory=list)


@dataclass
class FetchedMetadata:
    """Raw JSON document plus its normalized form."""

    raw: Any
    normalized: NormalizedMetadata


def _string_field(document: dict, key: str) -> str:
    value = document.get(key)
    return value if isinstance(value, str) else ""


def normalize_attribute(item: Any) -> MetadataAttribute:
    if not isinstance(item, dict):
        return MetadataAttribute()
    return MetadataAttribute(
        trait_type=_string_field(item, "trait_type"),
        value=_string_field(item, "value"),
        display_type=_string_field(item, "display_type"),
    )


def normalize_metadata(raw: Any, initial_uri: str) -> NormalizedMetadata:
    """Normalize a metadata document.

    Args:
        raw: Parsed JSON document (any JSON value)
        initial_uri: Token URI before gateway rewriting; always becomes
            ``external_url``, whatever the document says

    Returns:
        NormalizedMetadata with empty-string defaults
    """
    document = raw if isinstance(raw, dict) else {}
    attributes = document.get("attributes")
    if not isinstance(attributes, list):
        attributes = []

    return NormalizedMetadata(
        description=_string_field(document, "description"),
        external_url=initial_uri,
        image=_string_field(document, "image"),
        name=_string_field(document, "name"),
        attributes=[normalize_attribute(item) for item in attributes],
    )


class MetadataFetcher:
    """HTTP client for metadata documents and binary assets."""

    def __init__(self, timeout: float = 15.0, http_client: httpx.AsyncClient | None = None):
        """Initialize fetcher.

        Args:
            timeout: Per-request timeout in seconds (ignored if http_client is given)
            http_client: Optional pre-configured client
        """
        self._owns_client = http_client is None
        self._client = http_client or httpx.AsyncClient(timeout=timeout, follow_redirects=True)

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def _get(self, uri: str) -> httpx.Response:
        try:
            response = await self._client.get(uri)
        except httpx.TimeoutException as e:
            raise MetadataFetchError(f"Request timeout for {uri}: {e}") from e
        except httpx.HTTPError as e:
            raise MetadataFetchError(f"Network error for {uri}: {e}") from e

        if not response.is_success:
            raise MetadataFetchError(f"GET {uri} returned HTTP {response.status_code}")
        return response

    async def fetch(self, metadata_uri: str, initial_uri: str) -> FetchedMetadata:
        """Fetch a metadata document and normalize it.

        Args:
            metadata_uri: Fetchable (gateway-rewritten) URI
            initial_uri: Original token URI, echoed as ``external_url``

        Raises:
            MetadataFetchError: Network error, non-2xx status or non-JSON body
        """
        response = await self._get(metadata_uri)

        try:
            raw = response.json()
        except ValueError as e:
            raise MetadataFetchError(f"Metadata at {metadata_uri} is not JSON") from e

        logger.debug("metadata.fetched", metadata_uri=metadata_uri, bytes=len(response.content))
        return FetchedMetadata(raw=raw, normalized=normalize_metadata(raw, initial_uri))

    async def fetch_bytes(self, uri: str) -> tuple[bytes, str]:
        """Download a binary asset.

        Returns:
            Tuple of (content, content type)
        """
        response = await self._get(uri)
        return response.content, response.headers.get("content-type", "application/octet-stream")
