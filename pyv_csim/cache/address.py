from __future__ import annotations
from ..config import CacheGeometry


def decode_address(address: int, geometry: CacheGeometry) -> tuple[int, int]:
    """Decomposes an address into (set_index, tag)."""
    set_index = (address >> geometry.block_bits) & (geometry.num_sets - 1)
    tag = address >> (geometry.set_bits + geometry.block_bits)
    return set_index, tag


def block_offset(address: int, geometry: CacheGeometry) -> int:
    return address & (geometry.block_size - 1)


def reconstruct_address(tag: int, set_index: int, geometry: CacheGeometry) -> int:
    """Reconstructs the block start address from tag and set index."""
    return (tag << (geometry.set_bits + geometry.block_bits)) | (set_index << geometry.block_bits)
