"""Boxcar matched filtering of time series and DM-time maps."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass

import numpy as np

from pulsesift.stats import get_mean_var


@dataclass
class MatchedFilterResult:
    """Outcome of a boxcar search over a DM-time map.

    ``snr_map`` and ``width_map`` have one row per trial DM; widths are in bins.
    """

    snr_map: np.ndarray
    width_map: np.ndarray
    dm_index: int
    time_index: int
    snr: float
    width: int
    profile: np.ndarray


def boxcar_widths(snrloss: float, nbin: int) -> list[int]:
    """Boxcar widths in bins, growing so that each step loses at most ``snrloss``.

    The series starts at one bin and stops before a width exceeds half of ``nbin``.
    """
    if not 0 <= snrloss < 1:
        raise ValueError("snrloss must lie in [0, 1)")
    wfactor = np.float32(1.0 / ((1.0 - snrloss) * (1.0 - snrloss)))
    limit = nbin // 2
    widths = [1]
    while True:
        current = widths[-1]
        nxt = int(np.float32(current) * wfactor)
        nxt = max(nxt, current + 1)
        if nxt > limit:
            break
        widths.append(nxt)
    return widths


def boxcar_snr(series: Sequence[float], widths: Sequence[int]) -> tuple[np.ndarray, np.ndarray]:
    """Best boxcar S/N and its width at each bin of a circular time series.

    Baseline and noise come from the quietest half of the series. Bins where
    no boxcar gives a non-negative S/N, or where the noise is zero, keep
    S/N 0 and width 0.
    """
    values = np.asarray(series, dtype=np.float64).ravel()
    nbin = values.size
    mean, var = get_mean_var(values)

    snr = np.zeros(nbin)
    best = np.zeros(nbin, dtype=np.int64)
    if var <= 0:
        return snr, best

    centred = values - mean
    csump = np.cumsum(np.concatenate([centred, centred]))

    for wn in widths:
        wn = int(wn)
        if wn < 1 or wn > nbin:
            raise ValueError(f"boxcar width {wn} outside 1..{nbin}")
        wl = wn // 2 + 1
        wh = (wn - 1) // 2
        scale = np.sqrt(1.0 / (wn * var))
        idx = np.arange(wl, nbin + wl)
        s = (csump[idx + wh] - csump[idx - wl]) * scale
        target = idx % nbin
        better = s >= snr[target]
        snr[target[better]] = s[better]
        best[target[better]] = wn
    return snr, best


def matched_filter(dmtmap: Sequence[float], ndm: int, nbin: int, snrloss: float) -> MatchedFilterResult:
    """Boxcar-filter every DM row of a flat DM-time map and locate the peak.

    The first bin holding the highest S/N, scanning rows in order, is the peak.
    """
    data = np.asarray(dmtmap, dtype=np.float64).ravel()
    if ndm < 1 or nbin < 2:
        raise ValueError("need at least one DM row and two bins")
    if data.size != ndm * nbin:
        raise ValueError(f"expected {ndm * nbin} values, got {data.size}")
    rows = data.reshape(ndm, nbin)

    widths = boxcar_widths(snrloss, nbin)
    snr_map = np.zeros((ndm, nbin))
    width_map = np.zeros((ndm, nbin), dtype=np.int64)
    for j, row in enumerate(rows):
        snr_map[j], width_map[j] = boxcar_snr(row, widths)

    flat = int(np.argmax(snr_map))
    dm_index, time_index = divmod(flat, nbin)
    return MatchedFilterResult(
        snr_map=snr_map,
        width_map=width_map,
        dm_index=dm_index,
        time_index=time_index,
        snr=float(snr_map[dm_index, time_index]),
        width=int(width_map[dm_index, time_index]),
        profile=rows[dm_index].copy(),
    )