"""Token identifier built from the two 128-bit halves of a Cairo u256."""

from dataclasses import dataclass

from ark_indexer.services.starknet.encoding import Felt, to_int

HALF_BITS = 128
HALF_LIMIT = 2**HALF_BITS

# Decimal digits of 2**256 - 1
PADDED_TOKEN_ID_WIDTH = 78


@dataclass(frozen=True)
class TokenId:
    """Logical 256-bit token id, stored on chain as (low, high)."""

    low: int
    high: int

    def __post_init__(self) -> None:
        for name, half in (("low", self.low), ("high", self.high)):
            if not 0 <= half < HALF_LIMIT:
                raise ValueError(f"token id {name} half out of range: {half}")

    @classmethod
    def from_felts(cls, low: Felt, high: Felt) -> "TokenId":
        return cls(low=to_int(low), high=to_int(high))

    @classmethod
    def from_int(cls, value: int) -> "TokenId":
        return cls(low=value & (HALF_LIMIT - 1), high=value >> HALF_BITS)

    @property
    def value(self) -> int:
        return (self.high << HALF_BITS) | self.low

    @property
    def hex(self) -> str:
        """Lowercase hex without padding or prefix."""
        return format(self.value, "x")

    @property
    def padded(self) -> str:
        """Zero-padded decimal; string order matches numeric order."""
        return str(self.value).zfill(PADDED_TOKEN_ID_WIDTH)

    @property
    def calldata(self) -> list[str]:
        return [hex(self.low), hex(self.high)]

    def __str__(self) -> str:
        return str(self.value)
