"""Small matrix inverses and curvature errors from chi-square surfaces."""

from __future__ import annotations

from collections.abc import Sequence

import numpy as np


def _det3(a: np.ndarray) -> float:
    return float(
        a[0, 0] * (a[1, 1] * a[2, 2] - a[2, 1] * a[1, 2])
        - a[0, 1] * (a[1, 0] * a[2, 2] - a[1, 2] * a[2, 0])
        + a[0, 2] * (a[1, 0] * a[2, 1] - a[1, 1] * a[2, 0])
    )


def inverse_matrix4x4(m: Sequence) -> np.ndarray:
    """Inverse of a 4x4 matrix by cofactors, in the shape it was given.

    Raises ValueError when the determinant is exactly zero.
    """
    original = np.asarray(m, dtype=np.float64)
    if original.size != 16:
        raise ValueError(f"expected 16 elements, got {original.size}")
    a = original.reshape(4, 4)

    cofactors = np.empty((4, 4))
    for i in range(4):
        rows = [r for r in range(4) if r != i]
        for j in range(4):
            cols = [c for c in range(4) if c != j]
            sign = -1.0 if (i + j) % 2 else 1.0
            cofactors[i, j] = sign * _det3(a[np.ix_(rows, cols)])

    det = float(np.dot(a[0], cofactors[0]))
    if det == 0:
        raise ValueError("matrix is singular")
    return (cofactors.T * (1.0 / det)).reshape(original.shape)


def inverse_matrix3x3(m: Sequence) -> np.ndarray:
    """Inverse of a 3x3 matrix; raises ValueError when it is singular."""
    a = np.asarray(m, dtype=np.float64)
    if a.size != 9:
        raise ValueError(f"expected 9 elements, got {a.size}")
    original_shape = a.shape
    a = a.reshape(3, 3)

    det = _det3(a)
    if det == 0:
        raise ValueError("matrix is singular")
    invdet = 1.0 / det

    inv = np.array(
        [
            [
                a[1, 1] * a[2, 2] - a[2, 1] * a[1, 2],
                a[0, 2] * a[2, 1] - a[0, 1] * a[2, 2],
                a[0, 1] * a[1, 2] - a[0, 2] * a[1, 1],
            ],
            [
                a[1, 2] * a[2, 0] - a[1, 0] * a[2, 2],
                a[0, 0] * a[2, 2] - a[0, 2] * a[2, 0],
                a[1, 0] * a[0, 2] - a[0, 0] * a[1, 2],
            ],
            [
                a[1, 0] * a[2, 1] - a[2, 0] * a[1, 1],
                a[2, 0] * a[0, 1] - a[0, 0] * a[2, 1],
                a[0, 0] * a[1, 1] - a[1, 0] * a[0, 1],
            ],
        ]
    )
    return (inv * invdet).reshape(original_shape)


def error_from_chisq_matrix(
    x: Sequence[float], y: Sequence[float], mxchisq: Sequence[float]
) -> tuple[float, float]:
    """Errors in x and y from a quadratic fit to a chi-square grid.

    The grid is row-major with one row per y value. The surface
    a*x^2 + 2*b*x*y + c*y^2 + d is fitted by least squares.
    Raises ValueError when the normal equations are singular.
    """
    xs = np.asarray(x, dtype=np.float64).ravel()
    ys = np.asarray(y, dtype=np.float64).ravel()
    chisq = np.asarray(mxchisq, dtype=np.float64).ravel()
    if chisq.size != xs.size * ys.size:
        raise ValueError(f"expected {xs.size * ys.size} chi-square values, got {chisq.size}")

    gx, gy = np.meshgrid(xs, ys)
    basis = np.stack(
        [gx.ravel() ** 2, 2.0 * gx.ravel() * gy.ravel(), gy.ravel() ** 2, np.ones(chisq.size)]
    )
    normal = basis @ basis.T
    rhs = basis @ chisq

    a, b, c, _ = inverse_matrix4x4(normal) @ rhs
    with np.errstate(divide="ignore", invalid="ignore"):
        denom = np.float64(a * c - b * b)
        xerr = np.sqrt(np.abs(np.float64(c) / denom))
        yerr = np.sqrt(np.abs(np.float64(a) / denom))
    return float(xerr), float(yerr)


def error_from_chisq_vector(x: Sequence[float], vchisq: Sequence[float]) -> float:
    """Error in x from a parabola a*x^2 + b*x + c fitted to chi-square values.

    Raises ValueError when the normal equations are singular.
    """
    xs = np.asarray(x, dtype=np.float64).ravel()
    chisq = np.asarray(vchisq, dtype=np.float64).ravel()
    if xs.size != chisq.size:
        raise ValueError(f"size mismatch: {xs.size} != {chisq.size}")

    basis = np.stack([xs ** 2, xs, np.ones(xs.size)])
    normal = basis @ basis.T
    rhs = basis @ chisq

    a = (inverse_matrix3x3(normal) @ rhs)[0]
    with np.errstate(divide="ignore"):
        return float(np.sqrt(np.abs(np.float64(1.0) / np.float64(a))))