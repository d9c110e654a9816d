"""Integer helpers, complex products, matrix transposes and running medians."""

from __future__ import annotations

from bisect import bisect_left, insort
from collections.abc import Iterable, Sequence

import numpy as np

_TILE_X = 16
_TILE_Y = 64


def _c_remainder(a: int, b: int) -> int:
    """Remainder with the sign of the dividend (truncating division)."""
    r = abs(a) % abs(b)
    return -r if a < 0 else r


def gcd(a: int, b: int) -> int:
    """Greatest common divisor by Euclid's algorithm."""
    while b != 0:
        a, b = b, _c_remainder(a, b)
    return a


def findlcm(values: Iterable[int]) -> int:
    """Least common multiple of all values, folded left to right."""
    items = list(values)
    if not items:
        raise ValueError("findlcm needs at least one value")
    result = items[0]
    for value in items[1:]:
        result = (value * result) // gcd(value, result)
    return result


def cmul(x: Sequence[complex], y: Sequence[complex]) -> np.ndarray:
    """Element-wise product of two equally long single-precision complex arrays."""
    xa = np.asarray(x, dtype=np.complex64)
    ya = np.asarray(y, dtype=np.complex64)
    if xa.shape != ya.shape:
        raise ValueError(f"size mismatch: {xa.size} != {ya.size}")
    return xa * ya


def _as_matrix(data: Sequence, m: int, n: int) -> np.ndarray:
    arr = np.asarray(data)
    if arr.size != m * n:
        raise ValueError(f"expected {m * n} elements for a {m}x{n} matrix, got {arr.size}")
    return arr.reshape(m, n)


def transpose(data: Sequence, m: int, n: int) -> np.ndarray:
    """Transpose a flat row-major m x n matrix into a flat n x m one.

    The tiled layout requires n to be a multiple of 16 and m a multiple of 64.
    """
    if n % _TILE_X != 0:
        raise ValueError(f"n={n} is not a multiple of {_TILE_X}")
    if m % _TILE_Y != 0:
        raise ValueError(f"m={m} is not a multiple of {_TILE_Y}")
    return np.ascontiguousarray(_as_matrix(data, m, n).T).ravel()


def transpose_pad(data: Sequence, m: int, n: int) -> np.ndarray:
    """Transpose a flat row-major m x n matrix of any shape into a flat n x m one."""
    return np.ascontiguousarray(_as_matrix(data, m, n).T).ravel()


def _median(window: list[float]) -> float:
    size = len(window)
    mid = size // 2
    if size % 2 == 1:
        return window[mid]
    return (window[mid - 1] + window[mid]) / 2


def _discard(window: list[float], value: float) -> float:
    """Remove one occurrence of value from the sorted window and return it."""
    index = bisect_left(window, value)
    if index == len(window) or window[index] != value:
        raise ValueError(f"value {value!r} is not in the window")
    return window.pop(index)


def running_median(data: Sequence[float], w: int) -> np.ndarray:
    """Centred running median; the window shrinks at both ends of the data."""
    values = [float(v) for v in data]
    size = len(values)
    if w < 1:
        raise ValueError("window width must be positive")
    if size == 0:
        return np.empty(0)
    w = min(w, size)

    a = -(w // 2)
    b = (w + 1) // 2
    window = sorted(values[:b])
    out = np.empty(size)
    out[0] = _median(window)
    for i in range(1, size):
        a += 1
        b += 1
        if a > 0:
            _discard(window, values[a - 1])
        if b <= size:
            insort(window, values[b - 1])
        out[i] = _median(window)
    return out


def running_median_window(data: Sequence[float], w: int) -> np.ndarray:
    """Running median kept as a growing, sliding and shrinking ordered window."""
    values = [float(v) for v in data]
    size = len(values)
    if w < 1:
        raise ValueError("window width must be positive")
    if size == 0:
        return np.empty(0)
    w = min(w, size)

    half = w // 2
    ahead = (w - 1) // 2
    a = -half - 1
    b = ahead

    window = [values[0]]
    for i in range(1, b):
        insort(window, values[i])

    out = np.empty(size)
    for i in range(half + 1):
        insort(window, values[b])
        out[i] = _median(window)
        a += 1
        b += 1

    for i in range(half + 1, size - ahead):
        insort(window, values[b])
        _discard(window, values[a])
        out[i] = _median(window)
        a += 1
        b += 1

    for i in range(size - ahead, size):
        _discard(window, values[a])
        out[i] = _median(window)
        a += 1
        b += 1

    return out