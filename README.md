# pulsesift

Tools for refining single-pulse candidates from radio transient
searches. Given a short block of dynamic-spectrum data around a
candidate, `pulsesift` takes robust off-pulse statistics, zaps bad
channels, cleans outliers and measures the pulse with a bank of
boxcar matched filters. It also builds the search plans that describe
the stages of a dedispersion and single-pulse search.

The package is pure Python on top of NumPy.

## Installing

```
pip install .
pip install .[test]   # with pytest, to run the tests
```

## Modules

| Module | Contents |
| --- | --- |
| `pulsesift.arrays` | `gcd`, `findlcm`, single-precision complex product `cmul`, flat-matrix transposes `transpose` (tiled shapes only: n a multiple of 16, m a multiple of 64) and `transpose_pad` (any shape), running medians `running_median` and `running_median_window`. |
| `pulsesift.coords` | `get_s_radec(ra, dec)` turns packed `hhmmss.s` / `ddmmss.s` numbers into `hh:mm:ss.ss` strings. The sign of the right ascension is dropped; a negative declination gets a leading minus. |
| `pulsesift.logfmt` | `format_block` renders a titled 64-character table of key/value pairs, `log_block` logs it at INFO, `init_logging` sets INFO as the level and returns the `pulsesift` logger. |
| `pulsesift.stats` | Off-pulse statistics taken from the quietest half of a circular profile: `get_mean_var`, `get_skewness_kurtosis`, `get_mean_var2` (two quiet quarters), `get_mean_var_2d` (a common window over all rows), and `get_mean_var_template` (summed residual variance after fitting a scaled, offset template to each channel). |
| `pulsesift.fitting` | `inverse_matrix3x3` and `inverse_matrix4x4` (raise `ValueError` on a singular matrix), and parameter errors from a quadratic fit to chi-square values: `error_from_chisq_vector` and `error_from_chisq_matrix`. |
| `pulsesift.peaks` | `boxcar_widths`, per-bin best boxcar S/N `boxcar_snr`, and `matched_filter` over a flat DM-time map, returning a `MatchedFilterResult`. |
| `pulsesift.candidate` | The `Candidate` class. |
| `pulsesift.searchplan` | The `SearchPlan` dataclass, `parse_rfi_options`, `parse_ddplan`, `build_plans`, `width_series` and `format_beam`. |

## Working with a candidate

A `Candidate` holds its data as an `(npol, nchan, nbin)` float32 array,
with the sample time in seconds and one frequency per channel:

```python
import numpy as np
from pulsesift.candidate import Candidate

npol, nchan, nbin = 1, 64, 256
tbin = 64e-6
frequencies = np.linspace(1500.0, 1200.0, nchan)
data = np.random.default_rng(1).normal(size=(npol, nchan, nbin))

cand = Candidate(data, npol, nchan, nbin, tbin, frequencies)

cand.get_stats()              # per-channel off-pulse mean, variance, skewness, kurtosis, lag-1 autocorrelation
cand.azap(3.0)                # zero channels beyond 3 IQR in kurtosis, skewness or autocorrelation
cand.zap([(1380.0, 1400.0)])  # zero channels whose frequency lies in a closed range
cand.get_stats()
cand.normalize()              # subtract the off-pulse mean, divide by the off-pulse deviation
cand.clip(1, 1, 5.0)          # zero samples whose td x fd block sum exceeds threshold*sqrt(td*fd)
cand.downsample(1, 4)         # sum groups of four channels; their frequencies are averaged

result = cand.matched_filter(0.1)
print(cand.snr, cand.width, cand.mjd)
```

Other steps:

- `sumif()` sums the first two polarisations into one.
- `zdot()` standardises each channel and removes a scaled, offset copy of
  the channel-averaged series (single polarisation only).
- `shrink_to_fit(nwidth, pow2bin=False, factor=1)` keeps only the first
  `nwidth * width / tbin` bins, rounded up to a power of two when asked and
  down to a multiple of `factor`; nothing changes if that is not fewer bins.
- `clip` only acts on normalised data; otherwise it logs a warning.
- `matched_filter(snrloss)` searches `cand.dmtmap` (with `dms`, `ddm`,
  `ndm`) when one has been set, and otherwise the spectrum summed over
  channels at the candidate DM. It records `snr`, `width` (seconds),
  `dm_maxsnr`, `mjd`, `maxdmid`, `maxtid` and `profile`.

## Boxcar matched filtering

`boxcar_widths(snrloss, nbin)` starts at one bin and grows each width by
`1/(1-snrloss)^2` (at least one bin) while it stays within half of `nbin`.
`boxcar_snr` takes baseline and noise from the quietest half of the series:

```python
import numpy as np
from pulsesift.peaks import boxcar_widths, boxcar_snr

series = np.random.default_rng(2).normal(size=256)
series[100:104] += 5.0

widths = boxcar_widths(0.1, series.size)
snr, best_width = boxcar_snr(series, widths)
print(int(np.argmax(snr)), best_width[np.argmax(snr)])
```

## Search plans

A ddplan has one line per stage: time downsampling, frequency
downsampling, DM start, DM step, number of DMs, S/N loss and maximum
width, then optional RFI options: `mask td fd`, `kadaneF td fd`,
`kadaneT td fd`, `zap flow fhigh`, `zdot`, `zero`. Lines that do not
start with a digit are skipped. RFI options accumulate: every stage also
carries those of the stages before it.

```python
from pulsesift.searchplan import SearchPlan, format_beam, parse_ddplan

lines = [
    "# td fd dms ddm ndm snrloss maxw",
    "1 1 0 0.1 1000 0.1 0.01 zap 1000 1100",
    "2 1 100 0.2 1000 0.1 0.02 kadaneF 8 4 zdot",
]
plans = parse_ddplan(lines, SearchPlan())
for plan in plans:
    plan.prepare_widths(1e-4 * plan.td)   # fills plan.vwn and plan.nbox

format_beam(3)          # 'cfbf00003'
format_beam(3, True)    # 'ifbf00003'
```

`build_plans(base, path)` reads the same format from a file, or returns
the base plan alone when no path is given. `SearchPlan.build_obsinfo`
fills the observation summary (source, telescope, RA, DEC, beam, GL, GB,
maximum model DM) from the plan's fields and the values passed in.

## Logging metadata

```python
from pulsesift.logfmt import format_block

print(format_block("Candidate", [("DM", "56.7"), ("S/N", "12.3")]))
```

The block starts with a newline, then the title in a row of `=`, one
`key:value` line per entry (key padded to 32, value to 31) and a closing
row of 64 `=`.

## What it does not do

`pulsesift` works on arrays already in memory. It does not read or write
filterbank or PSRFITS files, dedisperse raw data, build DM-time maps,
cluster candidates, make plots or archives, or compute Galactic electron
density distances. It has no command-line program.