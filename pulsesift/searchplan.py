"""Search plans: per-stage settings of a single-pulse search and how they are built."""

from __future__ import annotations

import math
import string
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field, replace
from os import PathLike

import numpy as np

from pulsesift.coords import get_s_radec

RfiStep = tuple
"""An RFI step: ("mask" | "kadaneF" | "kadaneT", td, fd) or ("zero" | "zdot",)."""

_TWO_ARGUMENT_FILTERS = ("mask", "kadaneF", "kadaneT")
_NO_ARGUMENT_FILTERS = ("zero", "zdot")
_DDPLAN_COLUMNS = 7


@dataclass
class SearchPlan:
    """Settings of one dedispersion and boxcar search stage."""

    td: int = 1
    fd: int = 1
    bswidth: float = 0.0

    thre_mask: float = 7.0
    bandlimit: float = 10.0
    bandlimit_kt: float = 10.0
    thre_kadane_t: float = 7.0
    thre_kadane_f: float = 7.0
    widthlimit: float = 10e-3
    zaplist: list[tuple[float, float]] = field(default_factory=list)
    rfilist: list[RfiStep] = field(default_factory=list)
    filltype: str = "mean"

    dms: float = 0.0
    ddm: float = 1.0
    ndm: int = 1000
    overlap: float = 0.0
    minw: float = 1e-4
    maxw: float = 2e-2
    snrloss: float = 0.1
    nbox: int = 0
    vwn: list[int] = field(default_factory=list)
    iqr: bool = False

    thre: float = 7.0
    radius_smearing: float = 0.003
    kvalue: int = 2
    maxncand: int = 100
    minpts: int = 0
    remove_cand_with_maxwidth: bool = False

    tstart: float = 0.0
    ibeam: int = 1
    src_raj: float = 0.0
    src_dej: float = 0.0
    source_name: str = ""
    rootname: str = ""
    telescope: str = ""

    id: int = 1
    fileid: int = 1
    fname: str = ""

    incoherent: bool = False
    verbose: bool = False

    outmean: float = 0.0
    outstd: float = 0.0
    outnbits: int = 0
    savetim: bool = False
    format: str = ""

    obsinfo: dict[str, str] = field(default_factory=dict)

    def prepare_widths(self, tsamp: float) -> list[int]:
        """Fix the boxcar widths for the sampling time of the dedispersed series.

        The minimum width is raised to one sample; presto output is always 32-bit.
        """
        if self.format == "presto":
            self.outnbits = 32
        self.minw = max(self.minw, tsamp)
        self.vwn = width_series(self.minw, self.maxw, tsamp, self.snrloss)
        self.nbox = len(self.vwn)
        return self.vwn

    def build_obsinfo(self, gl: float = 0.0, gb: float = 0.0, maxdm: float = 0.0) -> dict[str, str]:
        """Fill the observation summary shown with every candidate."""
        s_ra, s_dec = get_s_radec(self.src_raj, self.src_dej)
        self.obsinfo = {
            "Source_name": self.source_name,
            "Telescope": self.telescope,
            "RA": s_ra,
            "DEC": s_dec,
            "Beam": format_beam(self.ibeam, self.incoherent),
            "GL": f"{gl:.6f}",
            "GB": f"{gb:.6f}",
            "MaxDM_YMW16": f"{maxdm:.6f}",
        }
        return self.obsinfo


def _copy(plan: SearchPlan, **changes) -> SearchPlan:
    fresh = {
        "zaplist": list(plan.zaplist),
        "rfilist": list(plan.rfilist),
        "vwn": list(plan.vwn),
        "obsinfo": dict(plan.obsinfo),
    }
    fresh.update(changes)
    return replace(plan, **fresh)


def parse_rfi_options(tokens: Iterable[str]) -> tuple[list[RfiStep], list[tuple[float, float]]]:
    """Split RFI tokens into filter steps and frequency ranges to zap.

    "mask", "kadaneF" and "kadaneT" take a time and a frequency downsampling
    factor, "zap" takes a low and a high frequency, "zero" and "zdot" take
    nothing. Other tokens are ignored.
    """
    rfilist: list[RfiStep] = []
    zaplist: list[tuple[float, float]] = []
    stream = iter(tokens)
    for token in stream:
        if token in _TWO_ARGUMENT_FILTERS or token == "zap":
            try:
                first, second = next(stream), next(stream)
            except StopIteration:
                raise ValueError(f"RFI option {token!r} needs two arguments") from None
            if token == "zap":
                zaplist.append((float(first), float(second)))
            else:
                rfilist.append((token, int(first), int(second)))
        elif token in _NO_ARGUMENT_FILTERS:
            rfilist.append((token,))
    return rfilist, zaplist


def parse_ddplan(lines: Iterable[str], base: SearchPlan) -> list[SearchPlan]:
    """One plan per ddplan line that starts with a digit.

    Columns: td fd dms ddm ndm snrloss maxw, then RFI options. RFI options
    accumulate: every line also carries those of the lines before it.
    """
    rfilist = list(base.rfilist)
    zaplist = list(base.zaplist)
    plans: list[SearchPlan] = []
    for raw in lines:
        line = raw.strip()
        if not line or line[0] not in string.digits:
            continue
        parameters = line.split()
        if len(parameters) < _DDPLAN_COLUMNS:
            raise ValueError(f"ddplan line needs {_DDPLAN_COLUMNS} columns: {line!r}")
        steps, zaps = parse_rfi_options(parameters[_DDPLAN_COLUMNS:])
        rfilist.extend(steps)
        zaplist.extend(zaps)
        plans.append(
            _copy(
                base,
                td=int(parameters[0]),
                fd=int(parameters[1]),
                dms=float(parameters[2]),
                ddm=float(parameters[3]),
                ndm=int(parameters[4]),
                snrloss=float(parameters[5]),
                maxw=float(parameters[6]),
                rfilist=list(rfilist),
                zaplist=list(zaplist),
                id=len(plans) + 1,
            )
        )
    return plans


def build_plans(base: SearchPlan, ddplan_path: str | PathLike | None = None) -> list[SearchPlan]:
    """Plans from a ddplan file, or the base plan alone when no file is given."""
    if ddplan_path is None:
        return [_copy(base, id=1)]
    with open(ddplan_path, encoding="utf-8") as handle:
        return parse_ddplan(handle, base)


def width_series(minw: float, maxw: float, tsamp: float, snrloss: float) -> list[int]:
    """Boxcar widths in samples from minw up to maxw, losing at most snrloss per step.

    The first width is always kept, even when it exceeds maxw.
    """
    if tsamp <= 0:
        raise ValueError("tsamp must be positive")
    if not 0 <= snrloss < 1:
        raise ValueError("snrloss must lie in [0, 1)")
    minw = max(minw, tsamp)
    wfactor = np.float32(1.0 / ((1.0 - snrloss) * (1.0 - snrloss)))
    widths = [int(math.floor(minw / tsamp + 0.5))]
    while True:
        current = widths[-1]
        nxt = max(int(np.float32(current) * wfactor), current + 1)
        if nxt * tsamp > maxw:
            break
        widths.append(nxt)
    return widths


def format_beam(ibeam: int | str, incoherent: bool = False) -> str:
    """Beam label: "cfbf" (or "ifbf" when incoherent) and the beam zero-padded to five."""
    prefix = "ifbf" if incoherent else "cfbf"
    return prefix + str(ibeam).rjust(5, "0")