"""Off-pulse statistics of folded profiles and dynamic spectra."""

from __future__ import annotations

from collections.abc import Sequence

import numpy as np


def _as_profile(profile: Sequence[float]) -> np.ndarray:
    values = np.asarray(profile, dtype=np.float64).ravel()
    if values.size < 2:
        raise ValueError("a profile needs at least two bins")
    return values


def _offpulse_window(values: np.ndarray, half: int) -> tuple[float, np.ndarray]:
    """Return the smallest circular window sum of length ``half`` and its bin indices.

    The earliest window wins a tie, as the window starting at bin 0 is the
    reference that later windows must beat strictly.
    """
    n = values.size
    extended = np.concatenate([values, values])
    cumulative = np.concatenate([[0.0], np.cumsum(extended)])
    sums = cumulative[half:half + n] - cumulative[:n]
    istart = int(np.argmin(sums))
    indices = np.arange(istart, istart + half) % n
    return float(sums[istart]), indices


def get_skewness_kurtosis(profile: Sequence[float]) -> tuple[float, float]:
    """Skewness and excess kurtosis of the quietest half of a circular profile.

    Both are zero when that half has no variance.
    """
    values = _as_profile(profile)
    half = values.size // 2
    _, indices = _offpulse_window(values, half)
    window = values[indices]

    m1 = float(np.sum(window)) / half
    m2 = float(np.sum(window ** 2)) / half
    m3 = float(np.sum(window ** 3)) / half
    m4 = float(np.sum(window ** 4)) / half

    square = m1 * m1
    variance = m2 - square
    if variance == 0.0:
        return 0.0, 0.0
    skewness = (m3 - 3.0 * m2 * m1 + 2.0 * square * m1) / (variance * np.sqrt(variance))
    kurtosis = (m4 - 4.0 * m3 * m1 + 6.0 * m2 * square - 3.0 * square * square) / (
        variance * variance
    ) - 3.0
    return float(skewness), float(kurtosis)


def get_mean_var(profile: Sequence[float]) -> tuple[float, float]:
    """Mean and variance of the quietest half of a circular profile."""
    values = _as_profile(profile)
    half = values.size // 2
    minimum, indices = _offpulse_window(values, half)
    mean = minimum / half
    window = values[indices]
    var = float(np.sum((window - mean) ** 2)) / half
    return mean, var


def get_mean_var2(profile: Sequence[float]) -> tuple[float, float]:
    """Mean and variance from two quiet quarter windows of a circular profile.

    The first quarter window is the quietest one; the second is searched
    after it, and may grow to half the profile when that is quieter.
    """
    values = _as_profile(profile)
    nbin = values.size
    quarter = nbin // 4
    half = nbin // 2

    def at(i: int) -> float:
        return float(values[i % nbin])

    boxsum = float(np.sum(values[:quarter]))
    minimum = boxsum
    istart, iend = 0, quarter
    for i in range(nbin - 1):
        boxsum -= at(i)
        boxsum += at(i + quarter)
        if boxsum < minimum:
            minimum = boxsum
            istart, iend = i + 1, quarter + i + 1
    istart1, iend1 = istart, iend

    boxsum = sum(at(i) for i in range(iend1, iend1 + quarter))
    minimum = boxsum
    istart, iend = iend, iend + quarter
    for i in range(iend1, iend1 + half):
        boxsum -= at(i)
        boxsum += at(i + quarter)
        if boxsum < minimum:
            minimum = boxsum
            istart, iend = i + 1, quarter + i + 1
    for i in range(iend1 + half, iend1 + 3 * nbin // 4 - 1):
        boxsum -= at(i)
        boxsum += at(i + half)
        if boxsum < minimum:
            minimum = boxsum
            istart, iend = i + 1, half + i + 1
    istart2, iend2 = istart, iend

    if iend2 - istart2 == half:
        ranges = [range(istart2, iend2)]
    else:
        ranges = [range(istart1, iend1), range(istart2, iend2)]

    total = 0.0
    total_sq = 0.0
    for span in ranges:
        for i in span:
            v = at(i)
            total += v
            total_sq += v * v

    mean = total / half
    var = total_sq / half - mean * mean
    return mean, var


def get_mean_var_2d(profiles: Sequence[float], nrow: int, ncol: int) -> tuple[float, float]:
    """Mean and variance over all rows in the quietest common half of the columns."""
    values = np.asarray(profiles, dtype=np.float64).ravel()
    if values.size != nrow * ncol:
        raise ValueError(f"expected {nrow * ncol} values, got {values.size}")
    if ncol < 2 or nrow < 1:
        raise ValueError("need at least one row and two columns")
    matrix = values.reshape(nrow, ncol)
    half = ncol // 2
    minimum, indices = _offpulse_window(matrix.sum(axis=0), half)
    count = half * nrow
    mean = minimum / count
    window = matrix[:, indices]
    var = float(np.sum((window - mean) ** 2)) / count
    return mean, var


def get_mean_var_template(
    profile: Sequence[float],
    profiles: Sequence[float],
    nsubint: int,
    nchan: int,
    nbin: int,
) -> tuple[float, float]:
    """Residual variance after fitting a scaled, offset template to every channel.

    The variances of all sub-integrations and channels are summed; the
    returned mean is always zero.
    """
    template = np.asarray(profile, dtype=np.float64).ravel()
    data = np.asarray(profiles, dtype=np.float64).ravel()
    if template.size != nbin:
        raise ValueError(f"expected a template of {nbin} bins, got {template.size}")
    if data.size != nsubint * nchan * nbin:
        raise ValueError(f"expected {nsubint * nchan * nbin} values, got {data.size}")
    rows = data.reshape(nsubint * nchan, nbin)

    se = float(np.sum(template))
    ss = float(np.sum(template * template))
    temp = se * se - ss * nbin
    if temp == 0:
        temp = 1.0

    xe = rows.sum(axis=1)
    xs = rows @ template
    alpha = (se * xe - xs * nbin) / temp
    beta = (xs * se - xe * ss) / temp

    residual = rows - alpha[:, None] * template[None, :] - beta[:, None]
    row_mean = residual.mean(axis=1)
    row_var = (residual * residual).mean(axis=1) - row_mean * row_mean
    return 0.0, float(np.sum(row_var))