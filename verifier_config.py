import json
from dataclasses import dataclass, fields
from typing import Optional

from trie_hash import HASHERS, Hasher, get_hasher


@dataclass(frozen=True)
class VerifierConfig:
    """
    Knobs for proof verification.

    - hash_name: trie hash function, "keccak256" (Ethereum) or "blake2b256"
    - key_width: required key length in bytes, None accepts any length
    - max_depth: max nodes visited per key, None means 2 * key nibbles
    - max_workers: threads used to walk keys, 1 walks them in order
    """

    hash_name: str = "keccak256"
    key_width: Optional[int] = 32
    max_depth: Optional[int] = None
    max_workers: int = 1

    def __post_init__(self):
        if self.hash_name not in HASHERS:
            raise ValueError(f"unknown hash function: {self.hash_name!r}")
        if self.key_width is not None and self.key_width <= 0:
            raise ValueError("key_width must be positive")
        if self.max_depth is not None and self.max_depth <= 0:
            raise ValueError("max_depth must be positive")
        if self.max_workers < 1:
            raise ValueError("max_workers must be at least 1")

    @property
    def hasher(self) -> Hasher:
        return get_hasher(self.hash_name)

    def depth_limit(self, key: bytes) -> int:
        if self.max_depth is not None:
            return self.max_depth
        key_nibbles = 2 * len(key)
        return max(2 * key_nibbles, 1)

    @classmethod
    def from_dict(cls, d: dict) -> "VerifierConfig":
        known = {f.name for f in fields(cls)}
        unknown = set(d) - known
        if unknown:
            raise ValueError(f"unknown config keys: {sorted(unknown)}")
        return cls(**d)


def load_config(path: str) -> VerifierConfig:
    with open(path, "r") as f:
        return VerifierConfig.from_dict(json.load(f))
