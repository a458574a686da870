"""Rewrite token URIs into fetchable HTTP URLs."""

from typing import Callable

ARWEAVE_GATEWAY = "arweave.net"

UriSanitizer = Callable[[str], tuple[str, str]]


def ipfs_gateway_url(path: str, gateway: str) -> str:
    """Build a gateway URL for an IPFS path ("<CID>/optional/path")."""
    return f"https://{gateway}/ipfs/{path}"


def sanitize_uri(uri: str, gateway: str = "ipfs.io") -> tuple[str, str]:
    """Map a token URI to ``(fetchable_uri, original_uri)``.

    Supported schemes:
    - ``ipfs://<CID>/path`` and ``ipfs://ipfs/<CID>/path`` -> IPFS gateway
    - ``ar://<ID>`` -> Arweave gateway
    - ``http://`` / ``https://`` -> unchanged

    Anything else yields an empty fetchable URI, meaning "do not fetch".
    """
    original = uri
    candidate = uri.strip()
    lowered = candidate.lower()

    if lowered.startswith("ipfs://"):
        path = candidate[len("ipfs://") :]
        if path.lower().startswith("ipfs/"):
            path = path[len("ipfs/") :]
        return (ipfs_gateway_url(path, gateway) if path else "", original)

    if lowered.startswith("ar://"):
        path = candidate[len("ar://") :]
        return (f"https://{ARWEAVE_GATEWAY}/{path}" if path else "", original)

    if lowered.startswith(("http://", "https://")):
        return candidate, original

    return "", original


def make_sanitizer(gateway: str) -> UriSanitizer:
    """Bind the configured IPFS gateway."""

    def _sanitize(uri: str) -> tuple[str, str]:
        return sanitize_uri(uri, gateway=gateway)

    return _sanitize
