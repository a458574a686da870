"""Best-effort lookup of a token's current holder."""

import structlog

from ark_indexer.services.indexing.token_id import TokenId
from ark_indexer.services.indexing.uri_resolver import AbiMethod, token_id_halves
from ark_indexer.services.starknet.encoding import format_felt
from ark_indexer.services.starknet.rpc import ChainReader

logger = structlog.get_logger()

OWNER_METHODS: tuple[AbiMethod, ...] = (
    AbiMethod("ownerOf", token_id_halves),
    AbiMethod("owner_of", token_id_halves),
)


async def resolve_owner(
    rpc: ChainReader,
    contract_address: str,
    token_id: TokenId,
    block_number: int,
    methods: tuple[AbiMethod, ...] = OWNER_METHODS,
) -> str:
    """Return the owner address as a padded felt, or "" on any failure."""
    for method in methods:
        try:
            words = await rpc.call_contract(
                contract_address, method.name, method.encode_args(token_id), block_number
            )
            if words:
                return format_felt(words[0])
        except Exception as e:
            logger.debug(
                "owner_resolver.method_failed",
                contract_address=contract_address,
                token_id=str(token_id),
                method=method.name,
                error=str(e),
            )

    logger.info(
        "owner_resolver.unresolved",
        contract_address=contract_address,
        token_id=str(token_id),
        block_number=block_number,
    )
    return ""
