"""File storage for cached token assets.

Two backends share the ``FileManager`` protocol:
- LocalFileManager writes under a root directory (``<root>/<dir or tmp>/<name>``)
- PinataFileManager pins the file to IPFS through Pinata
"""

import asyncio
import json
from dataclasses import dataclass
from pathlib import Path
from typing import Protocol

import httpx
import structlog

from ark_indexer.services.exceptions import (
    StorageAuthError,
    StorageError,
    StorageNetworkError,
)

logger = structlog.get_logger()

DEFAULT_DIRECTORY = "tmp"


@dataclass
class FileInfo:
    """Name, content and optional directory of a file to store."""

    name: str
    content: bytes
    dir_path: str | None = None
    content_type: str = "application/octet-stream"


class FileManager(Protocol):
    async def save(self, file: FileInfo) -> str:
        """Store ``file`` and return its location.

        Raises:
            StorageError: The file could not be stored
        """
        ...


class LocalFileManager:
    """Saves files below a local root directory."""

    def __init__(self, root: str | Path = "images"):
        self.root = Path(root)

    def _write(self, path: Path, content: bytes) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(content)

    async def save(self, file: FileInfo) -> str:
        path = self.root / (file.dir_path or DEFAULT_DIRECTORY) / file.name
        try:
            await asyncio.to_thread(self._write, path, file.content)
        except OSError as e:
            raise StorageError(f"Failed to write {path}: {e}") from e

        logger.info("file_manager.saved", backend="local", path=str(path), size=len(file.content))
        return str(path)


class PinataFileManager:
    """Pins files to IPFS using the Pinata pinning service."""

    def __init__(
        self,
        jwt_token: str,
        timeout: float = 30.0,
        http_client: httpx.AsyncClient | None = None,
    ):
        """Initialize Pinata file manager.

        Args:
            jwt_token: Pinata API JWT token (from PINATA_JWT env var)
            timeout: Upload timeout in seconds (ignored if http_client is given)
            http_client: Optional pre-configured client
        """
        self.base_url = "https://api.pinata.cloud"
        self.headers = {"Authorization": f"Bearer {jwt_token}"}
        self._owns_client = http_client is None
        self._client = http_client or httpx.AsyncClient(timeout=timeout)

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def save(self, file: FileInfo) -> str:
        """Pin the file and return its ``ipfs://<CID>`` URI."""
        pinata_metadata = {
            "name": file.name,
            "keyvalues": {"directory": file.dir_path or DEFAULT_DIRECTORY},
        }

        try:
            response = await self._client.post(
                f"{self.base_url}/pinning/pinFileToIPFS",
                headers=self.headers,
                files={"file": (file.name, file.content, file.content_type)},
                data={
                    "pinataOptions": '{"cidVersion": 1}',
                    "pinataMetadata": json.dumps(pinata_metadata),
                },
            )
        except httpx.TimeoutException as e:
            raise StorageNetworkError(f"Upload timeout: {e}") from e
        except httpx.HTTPError as e:
            raise StorageNetworkError(f"Network error: {e}") from e

        if response.status_code in (401, 403):
            raise StorageAuthError(
                f"Pinata rejected credentials ({response.status_code}). "
                "Check PINATA_JWT configuration."
            )
        if response.status_code == 429 or response.status_code >= 500:
            raise StorageNetworkError(
                f"Pinata unavailable ({response.status_code}): {response.text}"
            )
        if not response.is_success:
            raise StorageError(f"Pinata upload failed ({response.status_code}): {response.text}")

        try:
            cid = response.json()["IpfsHash"]
        except (ValueError, KeyError, TypeError) as e:
            raise StorageError(f"Pinata returned an unexpected body: {response.text[:200]}") from e

        logger.info("file_manager.saved", backend="pinata", name=file.name, cid=cid)
        return f"ipfs://{cid}"
