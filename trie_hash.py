from typing import Callable, Dict

import rlp
from Crypto.Hash import BLAKE2b, keccak

Hasher = Callable[[bytes], bytes]


def keccak256(data: bytes) -> bytes:
    k = keccak.new(digest_bits=256)
    k.update(data)
    return k.digest()


def blake2b256(data: bytes) -> bytes:
    # Substrate's BlakeTwo256
    b = BLAKE2b.new(digest_bits=256)
    b.update(data)
    return b.digest()


HASHERS: Dict[str, Hasher] = {
    "keccak256": keccak256,
    "blake2b256": blake2b256,
}


def get_hasher(name: str) -> Hasher:
    try:
        return HASHERS[name]
    except KeyError:
        raise ValueError(f"unknown hash function: {name!r}") from None


def empty_trie_root(hasher: Hasher = keccak256) -> bytes:
    # This is the hash of the RLP encoding of an empty trie.
    return hasher(rlp.encode(b""))


EMPTY_TRIE_ROOT = empty_trie_root()
