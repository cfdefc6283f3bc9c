"""
Ordering of fixed-width keys for batch verification.

Keys are compared as unsigned big-endian byte strings, which is what Python's
bytes comparison does. sort_keys never mutates its argument.
"""

from typing import Iterable, List, Sequence, Tuple


def sort_keys(keys: Iterable[bytes]) -> List[bytes]:
    out = list(keys)
    if len(out) < 2:
        return out

    # Iterative quicksort; ranges are inclusive and only pushed when non-empty.
    stack = [(0, len(out) - 1)]
    while stack:
        left, right = stack.pop()
        if left >= right:
            continue
        lt, gt = _partition3(out, left, right)
        if lt > left:
            stack.append((left, lt - 1))
        if gt < right:
            stack.append((gt + 1, right))
    return out


def _partition3(keys: List[bytes], left: int, right: int) -> Tuple[int, int]:
    """
    Three-way partition of keys[left..right] around the middle element.
    Returns (lt, gt) such that keys[lt..gt] all equal the pivot, everything
    before lt is smaller and everything after gt is larger.
    left <= lt <= gt <= right always holds.
    """
    pivot = keys[left + (right - left) // 2]
    lt, i, gt = left, left, right
    while i <= gt:
        k = keys[i]
        if k < pivot:
            keys[lt], keys[i] = keys[i], keys[lt]
            lt += 1
            i += 1
        elif k > pivot:
            keys[gt], keys[i] = keys[i], keys[gt]
            gt -= 1
        else:
            i += 1
    return lt, gt


def dedupe_sorted(keys: Sequence[bytes]) -> List[bytes]:
    out = []
    for k in keys:
        if not out or out[-1] != k:
            out.append(k)
    return out


def sorted_unique_keys(keys: Iterable[bytes]) -> List[bytes]:
    return dedupe_sorted(sort_keys(keys))
