import pytest

from nibbles import bytes_to_nibbles
from trie_builder import TrieBuilder
from trie_hash import keccak256
from trie_node import BranchNode, decode_node


def account_key(i: int) -> bytes:
    return keccak256(i.to_bytes(8, "big"))


@pytest.fixture
def items():
    return {account_key(i): b"value-%d" % i for i in range(50)}


@pytest.fixture
def trie(items):
    return TrieBuilder(items)


@pytest.fixture
def deep_key(trie, items):
    """A key whose proof has at least one inner node between root and leaf."""
    for k in sorted(items):
        if len(trie.proof(k)) >= 3:
            return k
    raise AssertionError("no key with a three node proof")


@pytest.fixture
def wide_items():
    return {account_key(i): b"value-%d" % i for i in range(300)}


@pytest.fixture
def wide_trie(wide_items):
    return TrieBuilder(wide_items)


@pytest.fixture
def long_path_key(wide_trie, wide_items):
    """
    A key whose proof is root, branch, branch, ... with at least four nodes, and
    whose second and third nibbles differ. The third node is then indexed by a
    different nibble than the second node would be.
    """
    for k in sorted(wide_items):
        proof = wide_trie.proof(k)
        nibbles = bytes_to_nibbles(k)
        if (
            len(proof) >= 4
            and nibbles[1] != nibbles[2]
            and all(isinstance(decode_node(node), BranchNode) for node in proof[:3])
        ):
            return k
    raise AssertionError("no key with a four node proof")
