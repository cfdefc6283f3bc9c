import pytest
from hypothesis import given, strategies as st

from key_sort import dedupe_sorted, sort_keys, sorted_unique_keys

keys32 = st.binary(min_size=32, max_size=32)


def k(i: int) -> bytes:
    return i.to_bytes(32, "big")


@pytest.mark.parametrize(
    "keys",
    [
        [],
        [k(1)],
        [k(1), k(2), k(3), k(4)],
        [k(4), k(3), k(2), k(1)],
        [k(7)] * 9,
        [k(2), k(1)],
        [k(1), k(1), k(0), k(0), k(1)],
    ],
)
def test_sort_edge_cases(keys):
    original = list(keys)
    assert sort_keys(keys) == sorted(original)
    assert keys == original


def test_sort_is_unsigned_bytewise():
    keys = [b"\x80" + b"\x00" * 31, b"\x7f" + b"\xff" * 31, b"\x00" * 32]
    assert sort_keys(keys) == [keys[2], keys[1], keys[0]]


def test_sort_returns_new_list():
    keys = [k(1)]
    assert sort_keys(keys) is not keys


@given(st.lists(keys32, max_size=200))
def test_sort_matches_sorted(keys):
    assert sort_keys(keys) == sorted(keys)


@given(st.lists(st.sampled_from([k(0), k(1), k(2)]), max_size=100))
def test_sort_with_many_duplicates(keys):
    assert sort_keys(keys) == sorted(keys)


@given(st.lists(keys32, max_size=50))
def test_sorted_unique_keys(keys):
    assert sorted_unique_keys(keys) == sorted(set(keys))


def test_dedupe_sorted():
    assert dedupe_sorted([]) == []
    assert dedupe_sorted([k(1), k(1), k(2), k(3), k(3)]) == [k(1), k(2), k(3)]
