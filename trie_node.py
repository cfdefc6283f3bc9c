"""
Decoding of Merkle Patricia Trie nodes as they appear in proofs.

A node is the RLP encoding of one of:
  - the empty string                 -> EmptyNode
  - [hp_path, value]  (leaf flag)    -> LeafNode
  - [hp_path, child]  (no leaf flag) -> ExtensionNode
  - [c0, ..., c15, value]            -> BranchNode

A child reference is either a 32-byte hash of the child's encoding, or the
child itself embedded as an RLP list when its encoding is shorter than 32 bytes.
"""

from dataclasses import dataclass
from typing import List, Optional, Tuple, Union

import rlp
from rlp.exceptions import DecodingError

from nibbles import NibbleSeq, compact_decode_path
from proof_errors import MalformedEncoding, MalformedNode

HASH_LENGTH = 32
BRANCH_WIDTH = 16


@dataclass(frozen=True)
class EmptyNode:
    pass


@dataclass(frozen=True)
class LeafNode:
    path: NibbleSeq
    value: bytes


@dataclass(frozen=True)
class ExtensionNode:
    path: NibbleSeq
    child: "ChildRef"


@dataclass(frozen=True)
class BranchNode:
    children: Tuple[Optional["ChildRef"], ...]
    value: Optional[bytes]


DecodedNode = Union[EmptyNode, LeafNode, ExtensionNode, BranchNode]

# 32-byte hash, or an inline node decoded in place.
ChildRef = Union[bytes, DecodedNode]


def decode_node(raw: bytes) -> DecodedNode:
    try:
        item = rlp.decode(raw)
    except DecodingError as e:
        raise MalformedEncoding(f"node is not valid RLP: {e}") from e
    except RecursionError as e:
        # pyrlp recurses once per nested list.
        raise MalformedEncoding("node nests too deeply to decode") from e
    try:
        return decode_items(item)
    except RecursionError as e:
        raise MalformedNode("node nests too deeply") from e


def decode_items(item) -> DecodedNode:
    """Decode an already RLP-decoded node structure."""
    if isinstance(item, bytes):
        if item == b"":
            return EmptyNode()
        raise MalformedNode("node is a non-empty RLP string")

    # --- BRANCH NODE ---
    if len(item) == BRANCH_WIDTH + 1:
        children = tuple(_decode_child(c, allow_empty=True) for c in item[:BRANCH_WIDTH])
        value = item[BRANCH_WIDTH]
        if not isinstance(value, bytes):
            raise MalformedNode("branch node value is not bytes")
        return BranchNode(children=children, value=value or None)

    # --- LEAF / EXTENSION NODE ---
    elif len(item) == 2:
        path_enc, child_or_value = item
        if not isinstance(path_enc, bytes):
            raise MalformedNode("short node path is not bytes")
        path, is_leaf = compact_decode_path(path_enc)
        if is_leaf:
            if not isinstance(child_or_value, bytes):
                raise MalformedNode("leaf value is not bytes")
            return LeafNode(path=path, value=child_or_value)
        child = _decode_child(child_or_value, allow_empty=False)
        return ExtensionNode(path=path, child=child)

    raise MalformedNode(f"invalid node list length: {len(item)}")


def _decode_child(item, allow_empty: bool) -> Optional[ChildRef]:
    if isinstance(item, bytes):
        if len(item) == HASH_LENGTH:
            return item
        if item == b"" and allow_empty:
            return None
        raise MalformedNode(f"child reference has invalid length {len(item)}")

    # Embedded node: only legal when its encoding is shorter than a hash.
    encoded_len = len(rlp.encode(item))
    if encoded_len >= HASH_LENGTH:
        raise MalformedNode(f"inline child encoding is {encoded_len} bytes")
    return decode_items(item)


def child_hashes(node: DecodedNode) -> List[bytes]:
    """All 32-byte references carried by a node, including those of inline children."""
    out = []
    pending = [node]
    while pending:
        n = pending.pop()
        if isinstance(n, ExtensionNode):
            refs = [n.child]
        elif isinstance(n, BranchNode):
            refs = [c for c in n.children if c is not None]
        else:
            refs = []
        for ref in refs:
            if isinstance(ref, bytes):
                out.append(ref)
            else:
                pending.append(ref)
    return out


def node_kind(node: DecodedNode) -> str:
    return type(node).__name__[: -len("Node")].lower()
