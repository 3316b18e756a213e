from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from types import MappingProxyType
from typing import Iterable, List, Mapping, Optional, Tuple

logger = logging.getLogger(__name__)


class DistanceUnit(str, Enum):
    FEET = "ft"
    METERS = "m"


@dataclass(frozen=True)
class FrequencyEdges:
    min_khz: float
    max_khz: float

    @property
    def lowest_mhz(self) -> float:
        return float(self.min_khz) * 1e-3


# UK amateur allocations (kHz). The CW table is kept separately; it is not a
# slice of the full-band table (60 m CW sits below the full-band segment).
UK_BANDS_KHZ: Mapping[int, FrequencyEdges] = MappingProxyType({
    160: FrequencyEdges(1810.0, 2000.0),
    80: FrequencyEdges(3500.0, 3800.0),
    60: FrequencyEdges(5351.5, 5366.5),
    40: FrequencyEdges(7000.0, 7200.0),
    30: FrequencyEdges(10100.0, 10150.0),
    20: FrequencyEdges(14000.0, 14350.0),
    17: FrequencyEdges(18068.0, 18168.0),
    15: FrequencyEdges(21000.0, 21450.0),
    12: FrequencyEdges(24890.0, 24990.0),
    10: FrequencyEdges(28000.0, 29700.0),
    6: FrequencyEdges(50000.0, 52000.0),
})

UK_CW_BANDS_KHZ: Mapping[int, FrequencyEdges] = MappingProxyType({
    160: FrequencyEdges(1810.0, 1838.0),
    80: FrequencyEdges(3500.0, 3570.0),
    60: FrequencyEdges(5258.5, 5264.0),
    40: FrequencyEdges(7000.0, 7040.0),
    30: FrequencyEdges(10100.0, 10130.0),
    20: FrequencyEdges(14000.0, 14070.0),
    17: FrequencyEdges(18068.0, 18095.0),
    15: FrequencyEdges(21000.0, 21070.0),
    12: FrequencyEdges(24890.0, 24915.0),
    10: FrequencyEdges(28000.0, 28070.0),
    6: FrequencyEdges(50000.0, 50100.0),
})

CW_FLAG = "cw"
METRIC_FLAG = "metric"


def known_bands() -> Tuple[int, ...]:
    return tuple(sorted(UK_BANDS_KHZ.keys(), reverse=True))


def as_band_id(band_id: object) -> Optional[int]:
    if isinstance(band_id, bool):
        return None
    try:
        val = float(band_id)  # type: ignore[arg-type]
    except (TypeError, ValueError):
        return None
    if not val.is_integer():
        return None
    return int(val)


def resolve(band_id: object, use_cw: bool = False) -> Optional[FrequencyEdges]:
    """
    Map a band name in meters (e.g. 40) to its UK band edges in kHz.

    Returns None for bands outside the table; the caller skips them.
    """
    table = UK_CW_BANDS_KHZ if use_cw else UK_BANDS_KHZ
    key = as_band_id(band_id)
    edges = table.get(key) if key is not None else None
    if edges is None:
        logger.warning(f"Unexpected amateur band: {band_id} m")
        return None
    return edges


def parse_band_args(args: Iterable[object]) -> Tuple[List[object], bool, DistanceUnit]:
    """
    Split a mixed argument list into bands and the literal mode flags.

    Flags may appear anywhere, e.g. ``[80, 30, 40, "metric"]`` or
    ``["cw", "40", "20"]``. Repeated flags are harmless. Any number is kept
    as a band, even one outside the table (``999``, ``40.5``); `resolve`
    warns about those later. Words other than the flags are rejected.
    """
    bands: List[object] = []
    use_cw = False
    dist_unit = DistanceUnit.FEET
    for arg in args:
        tok = str(arg).strip()
        if not tok:
            continue
        low = tok.lower()
        if low == CW_FLAG:
            use_cw = True
            continue
        if low == METRIC_FLAG:
            dist_unit = DistanceUnit.METERS
            continue
        band = as_band_id(tok)
        if band is not None:
            bands.append(band)
            continue
        try:
            bands.append(float(tok))
        except ValueError:
            raise ValueError(
                f"Expected a band number or one of '{CW_FLAG}', '{METRIC_FLAG}'; got '{tok}'."
            ) from None
    return bands, use_cw, dist_unit
