"""
Half-wave harmonic intervals, plot spec and chart layout computation.
"""
import itertools
import logging
import math

import pytest

from band_table import UK_BANDS_KHZ, UK_CW_BANDS_KHZ, DistanceUnit, FrequencyEdges, known_bands
from endfed_lengths import (
    FEET_PER_METER,
    HIGHLIGHT_COLOR,
    MAX_HARMONIC,
    REGION_ALWAYS_BAD,
    REGION_HARMONIC,
    DegenerateAxisRange,
    InvalidBandEdges,
    NoValidBands,
    axis_ticks_ft,
    bad_lengths,
    build_chart_payload,
    build_chart_payload_safe,
    build_plot_spec,
    compute_chart_layout,
    convert_length,
    ft_to_m,
    m_to_ft,
    regions_table,
    tick_increment_ft,
)

ALL_EDGES = list(UK_BANDS_KHZ.values()) + list(UK_CW_BANDS_KHZ.values())


class TestBadLengths:

    def test_first_40m_interval(self):
        iv = next(bad_lengths(FrequencyEdges(7000.0, 7200.0), 133.72))
        assert iv.harmonic == 1
        assert iv.low_ft == pytest.approx(65.0)
        assert iv.high_ft == pytest.approx(468 / 7.0)

    def test_40m_stops_after_passing_full_wave(self):
        full_wave = 2 * 468 / 7.0
        ivs = list(bad_lengths(FrequencyEdges(7000.0, 7200.0), full_wave))
        assert [iv.harmonic for iv in ivs] == [1, 2, 3]
        assert ivs[-1].high_ft > full_wave
        assert all(iv.high_ft <= full_wave for iv in ivs[:-1])

    @pytest.mark.parametrize("edges", ALL_EDGES)
    def test_intervals_ordered_and_diverging(self, edges):
        ivs = list(bad_lengths(edges, 600.0))
        assert ivs, "at least the first harmonic is always emitted"
        for iv in ivs:
            assert iv.low_ft <= iv.high_ft
        lows = [iv.low_ft for iv in ivs]
        assert all(b > a for a, b in zip(lows, lows[1:]))

    def test_harmonic_cap_with_unreachable_ceiling(self):
        ivs = list(bad_lengths(FrequencyEdges(0.001, 0.002), math.inf))
        assert len(ivs) == MAX_HARMONIC
        assert ivs[-1].harmonic == MAX_HARMONIC

    def test_each_call_restarts(self):
        edges = FrequencyEdges(14000.0, 14350.0)
        first = list(bad_lengths(edges, 100.0))
        second = list(bad_lengths(edges, 100.0))
        assert first == second
        assert second[0].harmonic == 1

    @pytest.mark.parametrize(
        "edges",
        [
            FrequencyEdges(0.0, 7200.0),
            FrequencyEdges(-7000.0, 7200.0),
            FrequencyEdges(7200.0, 7000.0),
            FrequencyEdges(float("nan"), 7200.0),
            FrequencyEdges(7000.0, float("inf")),
        ],
    )
    def test_invalid_edges_rejected_on_call(self, edges):
        with pytest.raises(InvalidBandEdges):
            bad_lengths(edges, 100.0)

    def test_invalid_edges_are_value_errors(self):
        assert issubclass(InvalidBandEdges, ValueError)


class TestUnitConversion:

    @pytest.mark.parametrize("ft", [0.0, 1.0, 33.43, 133.714, 517.13])
    def test_round_trip(self, ft):
        assert m_to_ft(ft_to_m(ft)) == pytest.approx(ft, rel=1e-12, abs=1e-12)

    def test_meters_use_fixed_factor(self):
        assert convert_length(32.808, DistanceUnit.METERS) == pytest.approx(10.0)
        assert FEET_PER_METER == 3.2808

    def test_feet_unchanged(self):
        assert convert_length(12.5, DistanceUnit.FEET) == 12.5


class TestPlotSpec:

    def test_single_40m_band(self):
        spec = build_plot_spec([40])
        assert spec.edges == (FrequencyEdges(7000.0, 7200.0),)
        assert spec.full_wave_ft == pytest.approx(133.714, abs=1e-3)
        assert spec.qtr_wave_ft == pytest.approx(33.4286, abs=1e-3)
        assert spec.shortest_qtr_wave_ft == 30.0

    def test_bands_sorted_descending(self):
        spec = build_plot_spec([10, 40, 15, 20])
        assert spec.bands == (40, 20, 15, 10)

    def test_cw_keeps_40m_full_wave(self):
        full = build_plot_spec([40, 20, 15, 10])
        cw = build_plot_spec([40, 20, 15, 10], use_cw=True)
        assert cw.edges[0] == FrequencyEdges(7000.0, 7040.0)
        assert cw.full_wave_ft == pytest.approx(full.full_wave_ft)

    def test_lowest_band_sets_full_wave(self):
        spec = build_plot_spec([20, 160, 40])
        assert spec.lowest_mhz == pytest.approx(1.81)
        assert spec.full_wave_ft == pytest.approx(2 * 468 / 1.81)
        assert spec.shortest_qtr_wave_ft == 120.0

    def test_unknown_band_skipped_with_warning(self, caplog):
        with caplog.at_level(logging.WARNING):
            spec = build_plot_spec([40, 999])
        assert spec.bands == (40,)
        assert spec.unresolved == (999,)
        assert "999" in caplog.text

    def test_all_unknown_bands(self, caplog):
        with caplog.at_level(logging.WARNING):
            with pytest.raises(NoValidBands) as excinfo:
                build_plot_spec([999])
        assert excinfo.value.unresolved == (999,)
        assert "Unexpected amateur band: 999 m" in caplog.text

    def test_no_bands(self):
        with pytest.raises(NoValidBands):
            build_plot_spec([])


class TestAxis:

    def test_40m_ticks(self):
        spec = build_plot_spec([40])
        assert tick_increment_ft(spec) == 60.0
        ticks = axis_ticks_ft(spec)
        assert ticks[:2] == [30.0, 90.0]
        assert ticks[-1] == pytest.approx(spec.full_wave_ft)

    def test_four_band_tick_step(self):
        assert tick_increment_ft(build_plot_spec([40, 20, 15, 10])) == 10.0

    def test_zero_tick_step_is_error(self):
        spec = build_plot_spec([17, 15, 12, 10, 6])
        with pytest.raises(DegenerateAxisRange):
            tick_increment_ft(spec)
        with pytest.raises(DegenerateAxisRange):
            compute_chart_layout(spec)

    @pytest.mark.parametrize("bands", [[160], [40], [6], [80, 30, 40], [40, 20, 15, 10]])
    @pytest.mark.parametrize("unit", [DistanceUnit.FEET, DistanceUnit.METERS])
    def test_ticks_strictly_increasing(self, bands, unit):
        layout = compute_chart_layout(build_plot_spec(bands, dist_unit=unit))
        ticks = list(layout.ticks)
        assert len(ticks) >= 2
        assert all(b > a for a, b in zip(ticks, ticks[1:]))

    @pytest.mark.parametrize("use_cw", [False, True])
    @pytest.mark.parametrize("unit", [DistanceUnit.FEET, DistanceUnit.METERS])
    def test_end_ticks_inside_axis(self, use_cw, unit):
        checked = 0
        for size in (1, 2, 3):
            for bands in itertools.combinations(known_bands(), size):
                spec = build_plot_spec(list(bands), use_cw=use_cw, dist_unit=unit)
                try:
                    layout = compute_chart_layout(spec)
                except DegenerateAxisRange:
                    continue
                checked += 1
                lo, hi = layout.x_range
                step = convert_length(tick_increment_ft(spec), unit)
                ticks = layout.ticks
                assert lo <= ticks[0] <= lo + step, f"{bands}: first tick {ticks[0]} vs range {layout.x_range}"
                assert hi - step <= ticks[-1] <= hi, f"{bands}: last tick {ticks[-1]} vs range {layout.x_range}"
                assert all(lo <= t <= hi for t in ticks), f"{bands}: {ticks} outside {layout.x_range}"
        assert checked > 0

    def test_metric_40m_ticks(self):
        layout = compute_chart_layout(build_plot_spec([40], dist_unit=DistanceUnit.METERS))
        assert layout.ticks == (10.0, 27.0, 40.7)
        assert layout.x_range[1] == pytest.approx(40.757, abs=1e-3)

    def test_metric_80m_first_tick_rounds_up(self):
        layout = compute_chart_layout(build_plot_spec([80], dist_unit=DistanceUnit.METERS))
        assert layout.x_range[0] == pytest.approx(18.288, abs=1e-3)
        assert layout.ticks[0] == 19.0

    def test_feet_ticks_hit_axis_ends(self):
        layout = compute_chart_layout(build_plot_spec([80, 30, 40]))
        assert layout.ticks[0] == layout.x_range[0]
        assert layout.ticks[-1] == layout.x_range[1]

    def test_metric_ticks_whole_meters(self):
        layout = compute_chart_layout(build_plot_spec([80, 30, 40], dist_unit=DistanceUnit.METERS))
        for t in layout.ticks[:-1]:
            assert float(t).is_integer()


class TestChartLayout:

    def test_scenario_40m(self):
        layout = compute_chart_layout(build_plot_spec([40]))
        assert layout.title == "End-fed Antenna High Impedance Lengths for 40 UK Bands"
        assert layout.x_title == "Lengths to Avoid in Red (ft)"
        assert layout.x_range == pytest.approx((30.0, 2 * 468 / 7.0))
        assert layout.color == HIGHLIGHT_COLOR

        first = layout.regions[0]
        assert first.kind == REGION_ALWAYS_BAD
        assert (first.x0, first.x1) == pytest.approx((0.0, 468 / 14.0))
        harmonics = layout.regions[1:]
        assert [r.harmonic for r in harmonics] == [1, 2, 3]
        assert all(r.kind == REGION_HARMONIC and r.band == 40 for r in harmonics)
        assert (harmonics[0].x0, harmonics[0].x1) == pytest.approx((65.0, 66.857), abs=1e-3)

    def test_cw_title(self):
        layout = compute_chart_layout(build_plot_spec([10, 15, 20, 40], use_cw=True))
        assert layout.title == "End-fed Antenna High Impedance Lengths for [40 20 15 10] UK CW Sub-bands"

    def test_regions_in_band_order(self):
        layout = compute_chart_layout(build_plot_spec([20, 40]))
        bands = [r.band for r in layout.regions[1:]]
        assert bands == sorted(bands, reverse=True)
        assert set(bands) == {40, 20}

    def test_metric_scales_every_bound(self):
        feet = compute_chart_layout(build_plot_spec([15]))
        metric = compute_chart_layout(build_plot_spec([15], dist_unit=DistanceUnit.METERS))
        assert metric.x_title == "Lengths to Avoid in Red (m)"
        assert metric.x_range == pytest.approx(tuple(v / 3.2808 for v in feet.x_range))
        assert len(metric.regions) == len(feet.regions)
        for rf, rm in zip(feet.regions, metric.regions):
            assert rm.x0 == pytest.approx(rf.x0 / 3.2808)
            assert rm.x1 == pytest.approx(rf.x1 / 3.2808)

    def test_unresolved_bands_listed_as_warnings(self):
        layout = compute_chart_layout(build_plot_spec([40, 999]))
        assert layout.warnings == ("Unexpected amateur band: 999 m",)
        assert "for 40 UK" in layout.title

    def test_regions_table_rows(self):
        rows = regions_table(compute_chart_layout(build_plot_spec([40])))
        assert rows[0]["Band (m)"] == "all"
        assert rows[1]["Harmonic"] == 1
        assert rows[1]["From (ft)"] == 65.0


class TestPayload:

    def test_payload_available(self):
        payload = build_chart_payload([40, 999])
        assert payload["available"] is True
        assert payload["warnings"] == ["Unexpected amateur band: 999 m"]
        assert payload["layout"].band_count == 1

    def test_safe_payload_no_valid_bands(self):
        payload = build_chart_payload_safe([999])
        assert payload["available"] is False
        assert "999" in payload["error"]
        assert payload["warnings"] == ["Unexpected amateur band: 999 m"]
        assert payload["layout"] is None

    def test_safe_payload_degenerate_axis(self):
        payload = build_chart_payload_safe([17, 15, 12, 10, 6])
        assert payload["available"] is False
        assert "Tick step" in payload["error"]
