"""A single-pulse candidate: a dynamic spectrum cut around one pulse."""

from __future__ import annotations

import logging
import math
from collections.abc import Iterable, Sequence

import numpy as np

from pulsesift.peaks import MatchedFilterResult, matched_filter as _matched_filter

_log = logging.getLogger("pulsesift")

_SECONDS_PER_DAY = 86400.0


def _quiet_half(values: np.ndarray) -> tuple[float, np.ndarray]:
    """Smallest circular window sum over half the bins, and that window's indices.

    The earliest window wins a tie.
    """
    n = values.size
    half = n // 2
    extended = np.concatenate([values, values])
    cumulative = np.concatenate([[0.0], np.cumsum(extended)])
    sums = cumulative[half:half + n] - cumulative[:n]
    istart = int(np.argmin(sums))
    return float(sums[istart]), np.arange(istart, istart + half) % n


def _quartiles(values: np.ndarray) -> tuple[float, float]:
    ordered = np.sort(values)
    k = ordered.size // 4
    return float(ordered[k]), float(ordered[ordered.size - 1 - k])


class Candidate:
    """Dynamic spectrum of one candidate, held as an (npol, nchan, nbin) array."""

    def __init__(
        self,
        data: Sequence[float] | np.ndarray,
        npol: int,
        nchan: int,
        nbin: int,
        tbin: float,
        frequencies: Sequence[float],
    ) -> None:
        values = np.asarray(data, dtype=np.float32)
        if values.size != npol * nchan * nbin:
            raise ValueError(f"expected {npol * nchan * nbin} samples, got {values.size}")
        freqs = np.asarray(frequencies, dtype=np.float64).ravel()
        if freqs.size != nchan:
            raise ValueError(f"expected {nchan} frequencies, got {freqs.size}")
        if tbin <= 0:
            raise ValueError("tbin must be positive")

        self.data = values.reshape(npol, nchan, nbin).copy()
        self.frequencies = freqs.copy()
        self.tbin = float(tbin)

        self.mjd_start = 0.0
        self.mjd = 0.0
        self.dm = 0.0
        self.width = 0.0
        self.snr = 0.0
        self.dm_maxsnr = 0.0

        self.dms = 0.0
        self.ddm = 0.0
        self.ndm = 0
        self.dmtmap: np.ndarray | None = None

        self.mean = np.zeros(0)
        self.var = np.zeros(0)
        self.skewness = np.zeros(0)
        self.kurtosis = np.zeros(0)
        self.autocorr1 = np.zeros(0)
        self.weights: np.ndarray | None = None

        self.profile = np.zeros(0)
        self.snr_map = np.zeros(0)
        self.width_map = np.zeros(0, dtype=np.int64)
        self.maxdmid = 0
        self.maxtid = 0

        self.isdedispersed = False
        self.isnormalized = False

    @property
    def npol(self) -> int:
        return self.data.shape[0]

    @property
    def nchan(self) -> int:
        return self.data.shape[1]

    @property
    def nbin(self) -> int:
        return self.data.shape[2]

    def _summed_pols(self) -> np.ndarray:
        return self.data[: min(self.npol, 2)].astype(np.float64).sum(axis=0)

    def shrink_to_fit(self, nwidth: int, pow2bin: bool = False, factor: int = 1) -> None:
        """Keep only the first nwidth*width/tbin bins (optionally a power of two)."""
        if factor < 1:
            raise ValueError("factor must be positive")
        nbin_new = int(nwidth * self.width / self.tbin)
        if pow2bin:
            if nbin_new <= 0:
                raise ValueError("pulse width gives no bins to keep")
            nbin_new = int(2 ** math.ceil(math.log2(nbin_new)))
        nbin_new = (nbin_new // factor) * factor
        if nbin_new >= self.nbin:
            return
        if nbin_new <= 0:
            raise ValueError("pulse width gives no bins to keep")
        self.data = self.data[:, :, :nbin_new].copy()

    def sumif(self) -> None:
        """Sum the first two polarisations into one."""
        if self.npol == 1:
            return
        self.data = self._summed_pols().astype(np.float32)[np.newaxis]

    def downsample(self, td: int, fd: int) -> None:
        """Sum blocks of td bins and fd channels; channel frequencies are averaged."""
        if td == 1 and fd == 1:
            return
        if td < 1 or fd < 1:
            raise ValueError("downsample factors must be positive")
        nchan_new = self.nchan // fd
        nbin_new = self.nbin // td
        if nchan_new == 0 or nbin_new == 0:
            raise ValueError("downsample factors exceed the data size")
        block = self.data[:, : nchan_new * fd, : nbin_new * td].astype(np.float64)
        block = block.reshape(self.npol, nchan_new, fd, nbin_new, td).sum(axis=(2, 4))
        self.frequencies = self.frequencies[: nchan_new * fd].reshape(nchan_new, fd).mean(axis=1)
        self.data = block.astype(np.float32)
        self.tbin *= td
        self.isnormalized = False

    def get_stats(self) -> None:
        """Per-channel off-pulse mean, variance, skewness, kurtosis and lag-1 autocorrelation."""
        npol, nchan, nbin = self.data.shape
        if nbin < 4:
            raise ValueError("need at least four bins for statistics")
        half = nbin // 2
        summed = self._summed_pols()
        data64 = self.data.astype(np.float64)

        self.mean = np.zeros(npol * nchan)
        self.var = np.zeros(npol * nchan)
        self.skewness = np.zeros(nchan)
        self.kurtosis = np.zeros(nchan)
        self.autocorr1 = np.zeros(nchan)

        for j in range(nchan):
            minimum, idx = _quiet_half(summed[j])
            window = data64[:, j, idx]
            means = window.sum(axis=1) / half
            self.mean[j::nchan] = means
            self.var[j::nchan] = (window * window).sum(axis=1) / half - means * means

            dev = summed[j, idx] - minimum / half
            tmp_var = float(np.sum(dev * dev)) / half
            if tmp_var <= 0:
                continue
            self.skewness[j] = float(np.sum(dev ** 3)) / half / (tmp_var * math.sqrt(tmp_var))
            self.kurtosis[j] = float(np.sum(dev ** 4)) / half / (tmp_var * tmp_var) - 3.0
            self.autocorr1[j] = float(np.sum(dev[1:] * dev[:-1])) / (half - 1) / tmp_var

    def _require_stats(self) -> None:
        if self.mean.size != self.npol * self.nchan:
            raise ValueError("statistics are missing or stale; call get_stats first")

    def normalize(self) -> None:
        """Subtract the off-pulse mean of every channel and divide by its deviation."""
        self._require_stats()
        rows = self.data.reshape(self.npol * self.nchan, self.nbin).astype(np.float64)
        rows -= self.mean[:, None]
        positive = self.var > 0
        rows[positive] /= np.sqrt(self.var[positive])[:, None]
        self.data = rows.astype(np.float32).reshape(self.data.shape)
        self.mean = np.zeros_like(self.mean)
        self.var = np.where(positive, 1.0, 0.0)
        self.isnormalized = True

    def _ensure_weights(self) -> np.ndarray:
        if self.weights is None or self.weights.size != self.nchan:
            self.weights = np.ones(self.nchan)
        return self.weights

    def _apply_weights(self) -> None:
        self.data = (self.data * self.weights[None, :, None]).astype(np.float32)

    def azap(self, threshold: float) -> None:
        """Zero channels whose statistics lie beyond threshold times the IQR."""
        if self.kurtosis.size != self.nchan:
            raise ValueError("statistics are missing or stale; call get_stats first")
        weights = self._ensure_weights()
        bad = np.zeros(self.nchan, dtype=bool)
        for stat in (self.kurtosis, self.skewness, self.autocorr1):
            q1, q3 = _quartiles(stat)
            spread = q3 - q1
            bad |= (stat < q1 - threshold * spread) | (stat > q3 + threshold * spread)
        weights[bad] = 0.0
        self.var[: self.nchan][bad] = 0.0
        self.mean[: self.nchan][bad] = 0.0
        self._apply_weights()

    def zap(self, zaplist: Iterable[tuple[float, float]]) -> None:
        """Zero every channel whose frequency falls in one of the closed ranges."""
        ranges = list(zaplist)
        if not ranges:
            return
        weights = self._ensure_weights()
        for low, high in ranges:
            weights[(self.frequencies >= low) & (self.frequencies <= high)] = 0.0
        self._apply_weights()

    def clip(self, td: int, fd: int, threshold: float) -> None:
        """Zero samples of the first polarisation whose td x fd block sum is too high."""
        if not self.isnormalized:
            _log.warning("data is not normalized, so clip filter is not performed")
            return
        if td < 1 or fd < 1:
            raise ValueError("block sizes must be positive")
        nchans_ds = self.nchan // fd
        nsamples_ds = self.nbin // td
        if nchans_ds == 0 or nsamples_ds == 0:
            return
        region = self.data[0, : nchans_ds * fd, : nsamples_ds * td]
        blocks = region.astype(np.float64).reshape(nchans_ds, fd, nsamples_ds, td).sum(axis=(1, 3))
        limit = threshold * math.sqrt(td * fd)
        mask = np.repeat(np.repeat(blocks > limit, fd, axis=0), td, axis=1)
        region[mask] = 0.0

    def zdot(self) -> None:
        """Remove the zero-DM signal fitted as a scaled, offset copy in each channel."""
        if self.npol != 1:
            return
        rows = self.data[0].astype(np.float64)
        nbin = self.nbin
        means = rows.mean(axis=1)
        stds = np.sqrt((rows * rows).mean(axis=1) - means * means)
        stds[stds == 0.0] = 1.0
        rows = (rows - means[:, None]) / stds[:, None]

        s = rows.mean(axis=0)
        se = float(np.sum(s))
        ss = float(np.sum(s * s))
        xe = rows.sum(axis=1)
        xs = rows @ s
        tmp = se * se - ss * nbin
        if tmp != 0:
            alpha = (xe * se - xs * nbin) / tmp
            beta = (xs * se - xe * ss) / tmp
        else:
            alpha = np.zeros(self.nchan)
            beta = np.zeros(self.nchan)
        rows -= alpha[:, None] * s[None, :] + beta[:, None]
        self.data = rows.astype(np.float32)[np.newaxis]

    def matched_filter(self, snrloss: float) -> MatchedFilterResult:
        """Boxcar-search the DM-time map and record the best S/N, width, DM and time.

        Without a DM-time map the summed spectrum at the candidate DM is searched.
        """
        if self.dmtmap is None:
            dmtmap = self._summed_pols().sum(axis=0)
            self.dms, self.ddm, self.ndm = self.dm, 0.0, 1
        else:
            dmtmap = np.asarray(self.dmtmap, dtype=np.float64)
        result = _matched_filter(dmtmap, self.ndm, self.nbin, snrloss)

        self.snr_map = result.snr_map
        self.width_map = result.width_map
        self.maxdmid = result.dm_index
        self.maxtid = result.time_index
        self.snr = result.snr
        self.width = result.width * self.tbin
        self.dm_maxsnr = self.dms + result.dm_index * self.ddm
        self.mjd = self.mjd_start + result.time_index * self.tbin / _SECONDS_PER_DAY
        self.profile = result.profile
        return result