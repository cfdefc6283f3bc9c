import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Iterable, List, Mapping, Optional, Sequence

from key_sort import sorted_unique_keys
from nibbles import NibbleSeq, bytes_to_nibbles, nibbles_to_hex, starts_with
from proof_errors import (
    DepthExceeded,
    HashMismatch,
    MissingNode,
    ProofError,
    RejectReason,
)
from trie_hash import Hasher, empty_trie_root
from trie_node import (
    HASH_LENGTH,
    BranchNode,
    ChildRef,
    DecodedNode,
    EmptyNode,
    ExtensionNode,
    LeafNode,
    child_hashes,
    decode_node,
    node_kind,
)
from verifier_config import VerifierConfig

logger = logging.getLogger(__name__)


class Status(str, Enum):
    FOUND = "Found"
    NOT_FOUND = "NotFound"
    REJECTED = "Rejected"


@dataclass(frozen=True)
class VerificationResult:
    status: Status
    value: Optional[bytes] = None
    reason: Optional[RejectReason] = None
    detail: str = field(default="", compare=False)

    @classmethod
    def proven(cls, value: bytes) -> "VerificationResult":
        return cls(Status.FOUND, value=value)

    @classmethod
    def proven_absent(cls) -> "VerificationResult":
        return cls(Status.NOT_FOUND)

    @classmethod
    def invalid(cls, reason: RejectReason, detail: str = "") -> "VerificationResult":
        return cls(Status.REJECTED, reason=reason, detail=detail)

    @property
    def is_trustworthy(self) -> bool:
        # Only FOUND and NOT_FOUND say anything about the trie.
        # REJECTED means the proof is unusable, never that the key is absent.
        return self.status is not Status.REJECTED


@dataclass(frozen=True)
class ProofIndex:
    """
    Read-only view of the proof nodes, built once per verification call and
    shared by every key walk.
    """

    root: bytes
    nodes: Mapping[bytes, bytes]
    # Supplied nodes that neither the root nor any supplied node points to,
    # decoded, or None when they do not decode.
    orphans: Mapping[bytes, Optional[DecodedNode]]
    hasher: Hasher
    empty_root: bytes

    @classmethod
    def build(cls, proof_nodes: Iterable[bytes], root: bytes, hasher: Hasher) -> "ProofIndex":
        # Build proof database: hash -> node_bytes
        proof_db = {}
        for node_bytes in proof_nodes:
            if not isinstance(node_bytes, (bytes, bytearray)):
                raise TypeError(f"proof node must be bytes, got {type(node_bytes).__name__}")
            node_bytes = bytes(node_bytes)
            proof_db[hasher(node_bytes)] = node_bytes

        referenced = {root}
        decoded = {}
        for h, node_bytes in proof_db.items():
            try:
                node = decode_node(node_bytes)
            except ProofError:
                # Decode errors are reported when (if) a walk reaches this node.
                decoded[h] = None
                continue
            decoded[h] = node
            referenced.update(child_hashes(node))

        orphans = {h: node for h, node in decoded.items() if h not in referenced}
        return cls(
            root=root,
            nodes=proof_db,
            orphans=orphans,
            hasher=hasher,
            empty_root=empty_trie_root(hasher),
        )

    def __len__(self) -> int:
        return len(self.nodes)

    def lookup(self, ref: bytes, remaining: NibbleSeq) -> bytes:
        node_bytes = self.nodes.get(ref)
        if node_bytes is None:
            if self.nodes and (ref == self.root or self._has_substitute(remaining)):
                raise HashMismatch(f"no supplied node hashes to {ref.hex()}")
            raise MissingNode(f"Proof is missing node for hash {ref.hex()}")
        # Sanity check that the provided node matches the hash we are looking for.
        if self.hasher(node_bytes) != ref:
            raise HashMismatch(f"Node hash mismatch in proof for {ref.hex()}")
        return node_bytes

    def _has_substitute(self, remaining: NibbleSeq) -> bool:
        """
        True if an orphan is shaped to sit where the walk stopped, i.e. with
        `remaining` key nibbles left. Such a node was supplied for this spot
        but does not hash to the reference, which is a mismatch. A deeper node
        whose parent was left out does not fit and the parent is just missing.
        """
        for node in self.orphans.values():
            if node is None:
                # Honest proofs only hold decodable nodes.
                return True
            if isinstance(node, LeafNode):
                if len(node.path) == len(remaining):
                    return True
            elif isinstance(node, ExtensionNode):
                if starts_with(remaining, node.path) and self._continues(node.child):
                    return True
            elif isinstance(node, BranchNode):
                if not remaining:
                    if node.value is not None:
                        return True
                elif node.children[remaining[0]] is not None and self._continues(
                    node.children[remaining[0]]
                ):
                    return True
        return False

    def _continues(self, child: ChildRef) -> bool:
        # The orphan's own next hop must be resolvable, unless a tampered
        # pointer left the next node orphaned as well.
        if not isinstance(child, bytes) or child in self.nodes:
            return True
        return len(self.orphans) > 1


def walk_key(key: bytes, index: ProofIndex, config: VerifierConfig) -> VerificationResult:
    """
    Walk the proof from the root towards key.

    Returns FOUND with the stored value, NOT_FOUND when the proof shows the key
    is absent, and REJECTED when the proof cannot decide either way.
    """
    try:
        value = _walk(key, index, config.depth_limit(key))
    except ProofError as e:
        logger.warning("rejected proof for key %s: %s (%s)", key.hex(), e.reason.value, e)
        return VerificationResult.invalid(e.reason, str(e))
    if value is None:
        return VerificationResult.proven_absent()
    return VerificationResult.proven(value)


def _walk(key: bytes, index: ProofIndex, max_depth: int) -> Optional[bytes]:
    # Handle the special case of an empty trie.
    if index.root == index.empty_root:
        return None  # Key not in empty trie

    key_nibbles = bytes_to_nibbles(key)
    current_node_ref = index.root  # type: ChildRef
    depth = 0

    # Traverse
    while True:
        depth += 1
        if depth > max_depth:
            raise DepthExceeded(f"walk exceeded {max_depth} nodes")

        # A bytes ref is a hash to look up in the proof DB. Anything else is
        # an embedded node that was decoded along with its parent.
        if isinstance(current_node_ref, bytes):
            node = decode_node(index.lookup(current_node_ref, key_nibbles))
        else:
            node = current_node_ref

        logger.debug(
            "step %d: %s node, remaining path %s",
            depth,
            node_kind(node),
            nibbles_to_hex(key_nibbles),
        )

        if isinstance(node, EmptyNode):
            return None

        # --- BRANCH NODE ---
        elif isinstance(node, BranchNode):
            if len(key_nibbles) == 0:
                # We've consumed the key, the value is in the 17th slot.
                return node.value

            # Select child by next nibble
            nib = key_nibbles[0]
            key_nibbles = key_nibbles[1:]
            child = node.children[nib]
            if child is None:
                # No child at this path -> key not in trie
                return None
            current_node_ref = child
            continue

        # --- LEAF NODE ---
        elif isinstance(node, LeafNode):
            # Leaf must match the remaining key exactly
            if node.path == key_nibbles:
                return node.value
            return None  # Key does not match leaf path

        # --- EXTENSION NODE ---
        elif isinstance(node, ExtensionNode):
            # Extension path must be a full prefix of the remaining key
            if not starts_with(key_nibbles, node.path):
                return None  # Key diverges from extension path
            key_nibbles = key_nibbles[len(node.path):]
            current_node_ref = node.child
            continue

        else:
            raise TypeError(f"unhandled node type {type(node).__name__}")


def _check_width(name: str, value: bytes, width: Optional[int]):
    if not isinstance(value, (bytes, bytearray)):
        raise TypeError(f"{name} must be bytes, got {type(value).__name__}")
    if width is not None and len(value) != width:
        raise ValueError(f"Invalid {name} length: {len(value)}, expected {width}")


def verify_proof(
    root: bytes,
    proof_nodes: Sequence[bytes],
    keys: Iterable[bytes],
    config: Optional[VerifierConfig] = None,
) -> Dict[bytes, VerificationResult]:
    """
    Verify a (multi-)proof for keys against a trie root.

    - root: 32-byte trie root hash
    - proof_nodes: RLP-encoded trie nodes, root-to-leaf per key, in any order
      across keys
    - keys: trie keys, each config.key_width bytes

    Returns a dict from each distinct key, in ascending byte order, to its
    VerificationResult. A bad proof for one key never affects another.
    Raises ValueError/TypeError only for caller errors (root or key width).
    """
    config = config or VerifierConfig()
    _check_width("root", root, HASH_LENGTH)
    keys = list(keys)
    for k in keys:
        _check_width("key", k, config.key_width)
    keys = [bytes(k) for k in keys]

    unique_keys = sorted_unique_keys(keys)
    if not unique_keys:
        return {}

    index = ProofIndex.build(proof_nodes, bytes(root), config.hasher)

    if config.max_workers > 1 and len(unique_keys) > 1:
        with ThreadPoolExecutor(max_workers=config.max_workers) as executor:
            results = list(executor.map(lambda k: walk_key(k, index, config), unique_keys))
    else:
        results = [walk_key(k, index, config) for k in unique_keys]

    out = dict(zip(unique_keys, results))
    _log_summary(root, len(index), out)
    return out


def _log_summary(root: bytes, n_nodes: int, results: Dict[bytes, VerificationResult]):
    counts = {s: 0 for s in Status}
    for r in results.values():
        counts[r.status] += 1
    logger.info(
        "verified %d keys against root %s with %d proof nodes: found=%d absent=%d rejected=%d",
        len(results),
        root.hex(),
        n_nodes,
        counts[Status.FOUND],
        counts[Status.NOT_FOUND],
        counts[Status.REJECTED],
    )


def verify_proofs_by_root(
    proofs_by_root: Mapping[bytes, Sequence[bytes]],
    keys: Iterable[bytes],
    config: Optional[VerifierConfig] = None,
) -> Dict[bytes, Dict[bytes, VerificationResult]]:
    """
    Verify the same keys against several roots, each with its own proof,
    e.g. state proofs attached to a batch of finalized headers.
    """
    keys = list(keys)
    return {
        root: verify_proof(root, proof_nodes, keys, config)
        for root, proof_nodes in proofs_by_root.items()
    }


def verify_eth_trie_proof(
    root_hash: bytes,
    key: bytes,
    proof_nodes: List[bytes],
    config: Optional[VerifierConfig] = None,
) -> Optional[bytes]:
    """
    Verify an Ethereum MPT proof against the given root hash and key.
    - root_hash: 32-byte trie root hash
    - key: bytes of the trie key (for state: keccak(address), for storage: keccak(slot))
    - proof_nodes: list of RLP-encoded nodes (bytes)

    Returns:
      - value (bytes) if the key exists in the trie
      - None if the key is not present
    Raises:
      - ProofError (a ValueError) on invalid proof (missing nodes, wrong
        structure, hash mismatch)
    """
    config = config or VerifierConfig(key_width=None)
    _check_width("root", root_hash, HASH_LENGTH)
    _check_width("key", key, config.key_width)
    index = ProofIndex.build(proof_nodes, bytes(root_hash), config.hasher)
    return _walk(bytes(key), index, config.depth_limit(key))
