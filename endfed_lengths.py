from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Dict, Iterator, List, Optional, Sequence, Tuple

import numpy as np

from band_table import DistanceUnit, FrequencyEdges, as_band_id, resolve

logger = logging.getLogger(__name__)

# Half-wavelength in feet is 468 / f(MHz); a quarter wave is 234 / f(MHz).
HALF_WAVE_FT_MHZ = 468.0
QUARTER_WAVE_FT_MHZ = 234.0
FEET_PER_METER = 3.2808
MAX_HARMONIC = 51

AXIS_ROUND_FT = 10.0
TICK_DENSITY_DIVISOR = 1.5
END_TICK_DECIMALS = 1

HIGHLIGHT_COLOR = "#FF0000"
REGION_ALWAYS_BAD = "quarter_wave"
REGION_HARMONIC = "harmonic"

TITLE_PREFIX = "End-fed Antenna High Impedance Lengths for"
TITLE_SUFFIX_FULL = " UK Bands"
TITLE_SUFFIX_CW = " UK CW Sub-bands"


class InvalidBandEdges(ValueError):
    pass


class DegenerateAxisRange(ValueError):
    pass


class NoValidBands(DegenerateAxisRange):
    def __init__(self, message: str, unresolved: Sequence[object] = ()):
        super().__init__(message)
        self.unresolved = tuple(unresolved)


@dataclass(frozen=True)
class LengthInterval:
    low_ft: float
    high_ft: float
    harmonic: int


@dataclass(frozen=True)
class PlotSpec:
    requested: Tuple[object, ...]
    bands: Tuple[int, ...]
    edges: Tuple[FrequencyEdges, ...]
    unresolved: Tuple[object, ...]
    use_cw: bool
    dist_unit: DistanceUnit
    lowest_mhz: float
    full_wave_ft: float
    qtr_wave_ft: float
    shortest_qtr_wave_ft: float

    @property
    def band_count(self) -> int:
        return len(self.bands)


@dataclass(frozen=True)
class FilledRegion:
    x0: float
    x1: float
    kind: str
    band: Optional[int] = None
    harmonic: Optional[int] = None


@dataclass(frozen=True)
class ChartLayout:
    title: str
    x_title: str
    x_range: Tuple[float, float]
    ticks: Tuple[float, ...]
    regions: Tuple[FilledRegion, ...]
    dist_unit: DistanceUnit
    band_count: int
    color: str = HIGHLIGHT_COLOR
    warnings: Tuple[str, ...] = field(default_factory=tuple)


def ft_to_m(ft):
    return ft / FEET_PER_METER


def m_to_ft(m):
    return m * FEET_PER_METER


def convert_length(ft, dist_unit: DistanceUnit):
    if DistanceUnit(dist_unit) is DistanceUnit.METERS:
        return ft_to_m(ft)
    return ft


def validate_edges(edges: FrequencyEdges) -> FrequencyEdges:
    lo = float(edges.min_khz)
    hi = float(edges.max_khz)
    if not np.isfinite(lo) or not np.isfinite(hi):
        raise InvalidBandEdges(f"Band edges must be finite; got ({lo}, {hi}) kHz.")
    if lo <= 0:
        raise InvalidBandEdges(f"Lower band edge must be positive; got {lo} kHz.")
    if lo > hi:
        raise InvalidBandEdges(f"Lower band edge {lo} kHz exceeds upper edge {hi} kHz.")
    return edges


def bad_lengths(edges: FrequencyEdges, wavelength_ceiling_ft: float) -> Iterator[LengthInterval]:
    """
    Yield the wire lengths (ft) where an end-fed wire is a multiple of a
    half-wave somewhere inside the band, lowest harmonic first.

    Stops after the first interval reaching past `wavelength_ceiling_ft`, and
    never yields more than MAX_HARMONIC intervals. Edges are checked before
    the first interval is requested.
    """
    validate_edges(edges)
    return _iter_bad_lengths(edges, float(wavelength_ceiling_ft))


def _iter_bad_lengths(edges: FrequencyEdges, wavelength_ceiling_ft: float) -> Iterator[LengthInterval]:
    max_mhz = float(edges.max_khz) * 1e-3
    min_mhz = float(edges.min_khz) * 1e-3
    n = 1
    while n <= MAX_HARMONIC:
        low_ft = n * HALF_WAVE_FT_MHZ / max_mhz
        high_ft = n * HALF_WAVE_FT_MHZ / min_mhz
        yield LengthInterval(low_ft=low_ft, high_ft=high_ft, harmonic=n)
        n += 1
        if high_ft > wavelength_ceiling_ft:
            break


def build_plot_spec(
    bands: Sequence[object],
    use_cw: bool = False,
    dist_unit: DistanceUnit = DistanceUnit.FEET,
) -> PlotSpec:
    requested = sorted(bands, key=_sort_key, reverse=True)
    resolved: List[int] = []
    edges: List[FrequencyEdges] = []
    unresolved: List[object] = []
    for band in requested:
        e = resolve(band, use_cw=use_cw)
        if e is None:
            unresolved.append(band)
            continue
        edges.append(validate_edges(e))
        resolved.append(int(as_band_id(band)))  # type: ignore[arg-type]

    if not edges:
        if requested:
            raise NoValidBands(f"No valid amateur bands in {_format_bands(requested)}.", unresolved)
        raise NoValidBands("No amateur bands selected.")

    lowest_mhz = min(e.lowest_mhz for e in edges)
    full_wave_ft = 2.0 * HALF_WAVE_FT_MHZ / lowest_mhz
    shortest_qtr_wave_ft = AXIS_ROUND_FT * np.floor((QUARTER_WAVE_FT_MHZ / lowest_mhz) / AXIS_ROUND_FT)
    logger.debug(f"Bands {resolved}: lowest {lowest_mhz:.4f} MHz, full wave {full_wave_ft:.2f} ft")
    return PlotSpec(
        requested=tuple(requested),
        bands=tuple(resolved),
        edges=tuple(edges),
        unresolved=tuple(unresolved),
        use_cw=bool(use_cw),
        dist_unit=DistanceUnit(dist_unit),
        lowest_mhz=float(lowest_mhz),
        full_wave_ft=float(full_wave_ft),
        qtr_wave_ft=float(full_wave_ft / 4.0),
        shortest_qtr_wave_ft=float(shortest_qtr_wave_ft),
    )


def _sort_key(band: object) -> float:
    try:
        return float(band)  # type: ignore[arg-type]
    except (TypeError, ValueError):
        return float("-inf")


def _format_bands(bands: Sequence[object]) -> str:
    # "15" for a single band, "[40 20 15 10]" for several.
    parts = [str(b) for b in bands]
    if len(parts) == 1:
        return parts[0]
    return "[" + " ".join(parts) + "]"


def tick_increment_ft(spec: PlotSpec) -> float:
    span = float(spec.full_wave_ft) - float(spec.shortest_qtr_wave_ft)
    inc = span / max(1, spec.band_count) / TICK_DENSITY_DIVISOR
    inc = AXIS_ROUND_FT * np.floor(inc / AXIS_ROUND_FT)
    if not np.isfinite(inc) or inc <= 0:
        raise DegenerateAxisRange(
            f"Tick step is {inc:g} ft for a {span:.2f} ft span over {spec.band_count} band(s); "
            "select fewer bands or include a lower-frequency band."
        )
    return float(inc)


def axis_ticks_ft(spec: PlotSpec) -> List[float]:
    start = float(spec.shortest_qtr_wave_ft)
    end = float(spec.full_wave_ft)
    inc = tick_increment_ft(spec)
    count = int(np.floor((end - start) / inc)) + 1
    ticks = [t for t in (start + i * inc for i in range(max(1, count))) if t <= end]
    if ticks and np.isclose(ticks[-1], end):
        ticks[-1] = end
    else:
        ticks.append(end)
    return ticks


def _convert_ticks(ticks_ft: List[float], dist_unit: DistanceUnit) -> Tuple[float, ...]:
    if DistanceUnit(dist_unit) is DistanceUnit.FEET:
        return tuple(float(t) for t in ticks_ft)
    # Whole meters inside the axis; the end ticks are pulled in so they stay
    # within [first, last] of the converted range.
    vals = ft_to_m(np.asarray(ticks_ft, dtype=float))
    lo = float(vals[0])
    hi = float(vals[-1])
    scale = 10.0 ** END_TICK_DECIMALS
    first = min(float(np.ceil(lo)), hi)
    last = max(min(float(np.floor(hi * scale) / scale), hi), first)
    out: List[float] = [first]
    for v in vals[1:-1]:
        t = float(np.round(v))
        if out[-1] < t < last:
            out.append(t)
    if last > out[-1]:
        out.append(last)
    return tuple(out)


def _title_for(spec: PlotSpec) -> str:
    suffix = TITLE_SUFFIX_CW if spec.use_cw else TITLE_SUFFIX_FULL
    return f"{TITLE_PREFIX} {_format_bands(spec.bands)}{suffix}"


def compute_chart_layout(spec: PlotSpec) -> ChartLayout:
    if not spec.full_wave_ft > spec.shortest_qtr_wave_ft:
        raise DegenerateAxisRange(
            f"Axis range [{spec.shortest_qtr_wave_ft:g}, {spec.full_wave_ft:g}] ft is empty."
        )
    ticks_ft = axis_ticks_ft(spec)
    unit = spec.dist_unit

    regions: List[FilledRegion] = [
        FilledRegion(
            x0=float(convert_length(0.0, unit)),
            x1=float(convert_length(spec.qtr_wave_ft, unit)),
            kind=REGION_ALWAYS_BAD,
        )
    ]
    for band, edges in zip(spec.bands, spec.edges):
        for iv in bad_lengths(edges, spec.full_wave_ft):
            regions.append(
                FilledRegion(
                    x0=float(convert_length(iv.low_ft, unit)),
                    x1=float(convert_length(iv.high_ft, unit)),
                    kind=REGION_HARMONIC,
                    band=int(band),
                    harmonic=int(iv.harmonic),
                )
            )

    x_range = (
        float(convert_length(spec.shortest_qtr_wave_ft, unit)),
        float(convert_length(spec.full_wave_ft, unit)),
    )
    warnings = tuple(f"Unexpected amateur band: {b} m" for b in spec.unresolved)
    return ChartLayout(
        title=_title_for(spec),
        x_title=f"Lengths to Avoid in Red ({unit.value})",
        x_range=x_range,
        ticks=_convert_ticks(ticks_ft, unit),
        regions=tuple(regions),
        dist_unit=unit,
        band_count=spec.band_count,
        warnings=warnings,
    )


def regions_table(layout: ChartLayout) -> List[Dict[str, object]]:
    unit = layout.dist_unit.value
    rows: List[Dict[str, object]] = []
    for r in layout.regions:
        rows.append(
            {
                "Band (m)": "all" if r.band is None else int(r.band),
                "Harmonic": "< 1/4 wave" if r.harmonic is None else int(r.harmonic),
                f"From ({unit})": round(float(r.x0), 2),
                f"To ({unit})": round(float(r.x1), 2),
            }
        )
    return rows


def build_chart_payload(
    bands: Sequence[object],
    use_cw: bool = False,
    dist_unit: DistanceUnit = DistanceUnit.FEET,
) -> Dict[str, object]:
    spec = build_plot_spec(bands, use_cw=use_cw, dist_unit=dist_unit)
    layout = compute_chart_layout(spec)
    return {
        "available": True,
        "error": "",
        "warnings": list(layout.warnings),
        "spec": spec,
        "layout": layout,
    }


def build_chart_payload_safe(
    bands: Sequence[object],
    use_cw: bool = False,
    dist_unit: DistanceUnit = DistanceUnit.FEET,
) -> Dict[str, object]:
    try:
        return build_chart_payload(bands, use_cw=use_cw, dist_unit=dist_unit)
    except ValueError as exc:
        logger.error(f"Cannot lay out chart for bands {list(bands)}: {exc}")
        unresolved = list(getattr(exc, "unresolved", ()))
        return {
            "available": False,
            "error": str(exc),
            "warnings": [f"Unexpected amateur band: {b} m" for b in unresolved],
            "spec": None,
            "layout": None,
        }
