from typing import Sequence, Tuple

from proof_errors import MalformedEncoding

NibbleSeq = Tuple[int, ...]


def bytes_to_nibbles(b: bytes) -> NibbleSeq:
    # Convert bytes to a sequence of nibbles (4-bit values), high nibble first
    n = []
    for byte in b:
        n.append((byte >> 4) & 0xF)
        n.append(byte & 0xF)
    return tuple(n)


def compact_decode_path(encoded: bytes) -> Tuple[NibbleSeq, bool]:
    """
    Decode the compact-encoded path for leaf/extension nodes.
    Returns (nibbles, is_leaf).
    See Ethereum's hex prefix encoding:
      flags nibble = (is_leaf ? 2 : 0) | (is_odd ? 1 : 0)
    If odd, the next nibble is part of the key; if even, one filler nibble follows
    and is skipped without looking at its value.
    """
    if not encoded:
        raise MalformedEncoding("hex-prefix path has no flag byte")
    nibbles = bytes_to_nibbles(encoded)
    flags = nibbles[0]
    if flags > 3:
        raise MalformedEncoding(f"invalid hex-prefix flag nibble {flags}")
    is_leaf = (flags & 2) != 0
    odd = (flags & 1) != 0
    if odd:
        path = nibbles[1:]
    else:
        path = nibbles[2:]
    return path, is_leaf


def shared_prefix_len(a: Sequence[int], b: Sequence[int]) -> int:
    i = 0
    m = min(len(a), len(b))
    while i < m and a[i] == b[i]:
        i += 1
    return i


def starts_with(seq: Sequence[int], prefix: Sequence[int]) -> bool:
    return len(prefix) <= len(seq) and shared_prefix_len(seq, prefix) == len(prefix)


def nibbles_to_hex(seq: Sequence[int]) -> str:
    return "".join("%x" % n for n in seq)
