from __future__ import annotations
import re
from dataclasses import dataclass
from typing import Set, Tuple

from ..errors import ConfigurationError, MalformedAddressError

# Optional leading "0" before the x prefix, then hex digits only.
_ADDRESS_RE = re.compile(r"^\s*(?:0?[xX])?([0-9a-fA-F]+)\s*$")


def next_power_of_two(n: int) -> int:
    """Rounds a positive integer up to the next power of two (8 -> 8, 9 -> 16)."""
    if n <= 0:
        raise ConfigurationError(f"Cannot round non-positive value {n} to a power of two.")
    return 1 << (n - 1).bit_length()


@dataclass(frozen=True)
class Geometry:
    """Bit layout of an address for a cache with `num_sets` sets of `block_size` bytes."""
    address_bits: int
    block_size: int
    num_sets: int

    def __post_init__(self):
        for name in ("address_bits", "block_size", "num_sets"):
            if getattr(self, name) <= 0:
                raise ConfigurationError(f"{name} must be positive, got {getattr(self, name)}.")
        if self.tag_bits < 0:
            raise ConfigurationError(
                "Invalid cache configuration: address bits insufficient "
                f"({self.address_bits} bits < {self.offset_bits} offset + {self.index_bits} index)."
            )

    @classmethod
    def from_request(cls, address_bits: int, block_size: int, num_sets: int) -> Geometry:
        """Builds a geometry after rounding block size and set count up to powers of two."""
        return cls(address_bits, next_power_of_two(block_size), next_power_of_two(num_sets))

    @property
    def offset_bits(self) -> int:
        return self.block_size.bit_length() - 1

    @property
    def index_bits(self) -> int:
        return self.num_sets.bit_length() - 1

    @property
    def tag_bits(self) -> int:
        return self.address_bits - self.offset_bits - self.index_bits


@dataclass(frozen=True)
class ParsedAddress:
    tag: int
    index: int
    offset: int
    full_address: int
    is_cold: bool

    def to_binary_string(self) -> str:
        """Fixed-width binary view of the fields: 32-bit tag, 16-bit index, 8-bit offset."""
        return (f"Tag: {self.tag & 0xFFFFFFFF:032b}"
                f" Index: {self.index & 0xFFFF:016b}"
                f" Offset: {self.offset & 0xFF:08b}")


class AddressDecoder:
    """
    Splits hexadecimal address tokens into tag, index and offset.

    The decoder remembers every distinct address value it has decoded so that
    the first access to an address can be reported as cold.
    """
    def __init__(self, address_bits: int, block_size: int, num_sets: int):
        self.geometry = Geometry(address_bits, block_size, num_sets)
        self.offset_bits = self.geometry.offset_bits
        self.index_bits = self.geometry.index_bits
        self.tag_bits = self.geometry.tag_bits
        self.offset_mask = (1 << self.offset_bits) - 1
        self.index_mask = (1 << self.index_bits) - 1
        self.seen_addresses: Set[int] = set()

    @staticmethod
    def parse_value(text: str) -> int:
        """Parses an `x`/`0x`-prefixed (or bare) hexadecimal token into an integer."""
        if not isinstance(text, str):
            raise MalformedAddressError(repr(text), "address tokens must be strings")
        match = _ADDRESS_RE.match(text)
        if match is None:
            raise MalformedAddressError(text)
        return int(match.group(1), 16)

    def split(self, address: int) -> Tuple[int, int, int]:
        """Decomposes an address value into (tag, index, offset)."""
        offset = address & self.offset_mask
        index = (address >> self.offset_bits) & self.index_mask
        tag = address >> (self.offset_bits + self.index_bits)
        return tag, index, offset

    def decode(self, text: str) -> ParsedAddress:
        address = self.parse_value(text)
        tag, index, offset = self.split(address)
        is_cold = address not in self.seen_addresses
        self.seen_addresses.add(address)
        return ParsedAddress(tag=tag, index=index, offset=offset, full_address=address, is_cold=is_cold)

    def reconstruct_address(self, tag: int, index: int, offset: int = 0) -> int:
        """Reassembles an address from its fields."""
        return (tag << (self.index_bits + self.offset_bits)) | (index << self.offset_bits) | offset
