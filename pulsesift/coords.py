"""Formatting of packed sexagesimal sky coordinates."""

from __future__ import annotations

import numpy as np


def _split(value: float) -> tuple[int, int, float, bool]:
    negative = value < 0
    value = -value if negative else value
    major = int(value / 10000)
    minor = int((value - major * 10000) / 100)
    seconds = float(np.float32(value - major * 10000 - minor * 100))
    return major, minor, seconds, negative


def get_s_radec(ra: float, dec: float) -> tuple[str, str]:
    """Turn packed hhmmss.s / ddmmss.s numbers into "hh:mm:ss.ss" strings.

    The sign of the right ascension is dropped; a negative declination
    gets a leading minus.
    """
    ra_hh, ra_mm, ra_ss, _ = _split(ra)
    dec_dd, dec_mm, dec_ss, dec_negative = _split(dec)

    s_ra = f"{ra_hh:02d}:{ra_mm:02d}:{ra_ss:05.2f}"
    s_dec = f"{dec_dd:02d}:{dec_mm:02d}:{dec_ss:05.2f}"
    if dec_negative:
        s_dec = "-" + s_dec
    return s_ra, s_dec