"""Single-pulse candidate refinement: off-pulse statistics, RFI cleaning, boxcar matched filtering and search plans."""

__version__ = "0.1.0"

__all__ = [
    "arrays",
    "candidate",
    "coords",
    "fitting",
    "logfmt",
    "peaks",
    "searchplan",
    "stats",
]