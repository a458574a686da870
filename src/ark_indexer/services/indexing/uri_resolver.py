"""Token URI resolution across contract ABI generations.

Starknet contracts written before Cairo 1 expose ``tokenURI``; newer ones
expose ``token_uri``. Both take the token id as its (low, high) halves. The
generations are probed in order and the first usable answer wins.
"""

from dataclasses import dataclass
from typing import Callable

import structlog

from ark_indexer.services.indexing.token_id import TokenId
from ark_indexer.services.starknet.encoding import decode_string
from ark_indexer.services.starknet.rpc import ChainReader

logger = structlog.get_logger()

UNDEFINED = "undefined"


@dataclass(frozen=True)
class AbiMethod:
    """One entry point name plus the way it expects the token id."""

    name: str
    encode_args: Callable[[TokenId], list[str]]


def token_id_halves(token_id: TokenId) -> list[str]:
    return token_id.calldata


TOKEN_URI_METHODS: tuple[AbiMethod, ...] = (
    AbiMethod("tokenURI", token_id_halves),
    AbiMethod("token_uri", token_id_halves),
)


def is_unresolved(value: str | None) -> bool:
    """Termination predicate shared by every probe: empty or "undefined"."""
    return value is None or value == "" or value == UNDEFINED


async def resolve_token_uri(
    rpc: ChainReader,
    contract_address: str,
    token_id: TokenId,
    block_number: int,
    methods: tuple[AbiMethod, ...] = TOKEN_URI_METHODS,
) -> str | None:
    """Return the token URI, or None when no ABI generation answers.

    An RPC failure only disqualifies the method that raised it; the next
    method in the sequence is still attempted.
    """
    for method in methods:
        try:
            words = await rpc.call_contract(
                contract_address, method.name, method.encode_args(token_id), block_number
            )
            value = decode_string(words)
        except Exception as e:
            logger.info(
                "uri_resolver.method_failed",
                contract_address=contract_address,
                token_id=str(token_id),
                method=method.name,
                error=str(e),
                error_type=type(e).__name__,
            )
            continue

        if not is_unresolved(value):
            logger.debug(
                "uri_resolver.resolved",
                contract_address=contract_address,
                token_id=str(token_id),
                method=method.name,
                token_uri=value,
            )
            return value

    logger.info(
        "uri_resolver.unresolved",
        contract_address=contract_address,
        token_id=str(token_id),
        block_number=block_number,
    )
    return None
