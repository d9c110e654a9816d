import numpy as np
import pytest

from pulsesift.candidate import Candidate


def _make(data, tbin=1.0, freqs=None):
    data = np.asarray(data, dtype=np.float32)
    npol, nchan, nbin = data.shape
    if freqs is None:
        freqs = np.linspace(1500.0, 1000.0, nchan)
    return Candidate(data.ravel(), npol, nchan, nbin, tbin, freqs)


def test_bad_sizes_rejected():
    with pytest.raises(ValueError):
        Candidate(np.zeros(10), 1, 2, 4, 1.0, [1.0, 2.0])
    with pytest.raises(ValueError):
        Candidate(np.zeros(8), 1, 2, 4, 1.0, [1.0])


def test_sumif_adds_first_two_pols():
    rng = np.random.default_rng(1)
    data = rng.normal(size=(4, 3, 8)).astype(np.float32)
    cand = _make(data)
    cand.sumif()
    assert cand.npol == 1
    np.testing.assert_allclose(cand.data[0], data[0] + data[1], rtol=1e-6)


def test_sumif_single_pol_unchanged():
    data = np.arange(16, dtype=np.float32).reshape(1, 2, 8)
    cand = _make(data)
    cand.sumif()
    np.testing.assert_array_equal(cand.data, data)


def test_downsample_sums_blocks_and_averages_frequencies():
    data = np.arange(2 * 4 * 6, dtype=np.float32).reshape(2, 4, 6)
    cand = _make(data, tbin=0.5, freqs=[100.0, 200.0, 300.0, 400.0])
    cand.downsample(3, 2)
    assert cand.data.shape == (2, 2, 2)
    expected = data.reshape(2, 2, 2, 2, 3).sum(axis=(2, 4))
    np.testing.assert_allclose(cand.data, expected)
    np.testing.assert_allclose(cand.frequencies, [150.0, 350.0])
    assert cand.tbin == 1.5
    assert not cand.isnormalized


def test_shrink_to_fit_truncates():
    data = np.arange(100, dtype=np.float32).reshape(1, 1, 100)
    cand = _make(data)
    cand.width = 5.0
    cand.shrink_to_fit(4, False, 1)
    assert cand.nbin == 20
    np.testing.assert_array_equal(cand.data[0, 0], data[0, 0, :20])


def test_shrink_to_fit_pow2_and_no_growth():
    data = np.zeros((1, 1, 100), dtype=np.float32)
    cand = _make(data)
    cand.width = 5.0
    cand.shrink_to_fit(4, True, 1)
    assert cand.nbin == 32
    cand.width = 50.0
    cand.shrink_to_fit(4, False, 1)
    assert cand.nbin == 32


def test_get_stats_constant_channel():
    data = np.full((1, 2, 16), 3.0, dtype=np.float32)
    cand = _make(data)
    cand.get_stats()
    np.testing.assert_allclose(cand.mean, [3.0, 3.0])
    np.testing.assert_allclose(cand.var, [0.0, 0.0], atol=1e-9)
    np.testing.assert_array_equal(cand.skewness, [0.0, 0.0])


def test_normalize_gives_unit_offpulse_variance():
    rng = np.random.default_rng(2)
    data = rng.normal(5.0, 2.0, size=(1, 3, 128)).astype(np.float32)
    cand = _make(data)
    cand.get_stats()
    cand.normalize()
    assert cand.isnormalized
    np.testing.assert_array_equal(cand.var, [1.0, 1.0, 1.0])
    cand.get_stats()
    np.testing.assert_allclose(cand.var, 1.0, rtol=1e-4)
    np.testing.assert_allclose(cand.mean, 0.0, atol=1e-4)


def test_normalize_requires_stats():
    cand = _make(np.zeros((1, 2, 8)))
    with pytest.raises(ValueError):
        cand.normalize()


def test_zap_zeroes_channels_in_range():
    data = np.ones((2, 4, 8), dtype=np.float32)
    cand = _make(data, freqs=[1000.0, 1100.0, 1200.0, 1300.0])
    cand.zap([(1050.0, 1200.0)])
    np.testing.assert_array_equal(cand.weights, [1.0, 0.0, 0.0, 1.0])
    assert np.all(cand.data[:, 1:3] == 0.0)
    assert np.all(cand.data[:, [0, 3]] == 1.0)


def test_zap_empty_list_keeps_data():
    data = np.ones((1, 2, 8), dtype=np.float32)
    cand = _make(data)
    cand.zap([])
    assert cand.weights is None
    np.testing.assert_array_equal(cand.data, data)


def test_azap_flags_spiky_channel():
    rng = np.random.default_rng(3)
    data = rng.normal(size=(1, 16, 256)).astype(np.float32)
    data[0, 7, ::4] += 40.0
    cand = _make(data)
    cand.get_stats()
    cand.azap(3.0)
    assert cand.weights[7] == 0.0
    assert np.all(cand.data[0, 7] == 0.0)
    assert cand.weights.sum() >= 12


def test_clip_skipped_when_not_normalized():
    data = np.zeros((1, 2, 8), dtype=np.float32)
    data[0, 0, 3] = 100.0
    cand = _make(data)
    cand.clip(1, 1, 5.0)
    assert cand.data[0, 0, 3] == 100.0


def test_clip_zeroes_outlier():
    rng = np.random.default_rng(4)
    data = rng.normal(size=(1, 4, 64)).astype(np.float32)
    cand = _make(data)
    cand.get_stats()
    cand.normalize()
    cand.data[0, 1, 10] = 100.0
    before = cand.data.copy()
    cand.clip(1, 1, 50.0)
    assert cand.data[0, 1, 10] == 0.0
    mask = np.ones_like(before, dtype=bool)
    mask[0, 1, 10] = False
    np.testing.assert_array_equal(cand.data[mask], before[mask])


def test_zdot_removes_common_signal():
    rng = np.random.default_rng(5)
    s = rng.normal(size=64)
    data = np.stack([a * s + b for a, b in [(1.0, 0.0), (2.0, 3.0), (-0.5, 1.0)]])[None]
    cand = _make(data)
    cand.zdot()
    np.testing.assert_allclose(cand.data, 0.0, atol=1e-4)


def test_matched_filter_finds_pulse_without_map():
    rng = np.random.default_rng(6)
    data = rng.normal(size=(1, 4, 256)).astype(np.float32)
    data[0, :, 100:104] += 10.0
    cand = _make(data, tbin=0.001)
    cand.mjd_start = 59000.0
    cand.dm = 12.0
    cand.matched_filter(0.1)
    assert 99 <= cand.maxtid <= 104
    assert cand.snr > 5.0
    assert cand.dm_maxsnr == 12.0
    assert cand.mjd == pytest.approx(59000.0 + cand.maxtid * 0.001 / 86400.0)
    assert cand.width == pytest.approx(cand.width_map[0, cand.maxtid] * 0.001)


def test_matched_filter_picks_best_dm_row():
    rng = np.random.default_rng(7)
    nbin = 128
    rows = rng.normal(size=(3, nbin))
    rows[2, 40:44] += 15.0
    cand = _make(np.zeros((1, 2, nbin)), tbin=1.0)
    cand.dmtmap = rows.ravel()
    cand.ndm = 3
    cand.dms = 10.0
    cand.ddm = 0.5
    cand.matched_filter(0.1)
    assert cand.maxdmid == 2
    assert cand.dm_maxsnr == pytest.approx(11.0)
    np.testing.assert_allclose(cand.profile, rows[2])