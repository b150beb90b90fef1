from __future__ import annotations

from dataclasses import dataclass
from typing import Iterator, List, Sequence, Tuple


@dataclass(frozen=True)
class BitValue:
    value: int
    description: str


class Bitmask(int):
    """
    An unsigned flag word decoded against an ordered table of BitValue entries.

    Tables are walked in definition order and matched bits are removed from the
    remaining mask, so an earlier entry claims its bits before a broader entry
    later in the table is considered.
    """

    def is_set(self, bit: int) -> bool:
        return int(self) & bit == bit

    def list_descriptions(self, values: Sequence[BitValue]) -> List[str]:
        return [bv.description for bv in self._consume(values)]

    def list_values(self, values: Sequence[BitValue]) -> List[int]:
        return [bv.value for bv in self._consume(values)]

    def _consume(self, values: Sequence[BitValue]) -> Iterator[BitValue]:
        remaining = int(self)
        for bv in values:
            if bv.value and remaining & bv.value == bv.value:
                remaining &= ~bv.value
                yield bv

    def __repr__(self) -> str:
        return f"Bitmask(0x{int(self):04X})"


def bit_table(pairs: Sequence[Tuple[int, str]]) -> Tuple[BitValue, ...]:
    return tuple(BitValue(value, description) for value, description in pairs)
