"""Tests for the preset signals and shapes."""

import pytest

from spectral_resynth.presets import (
    PRESETS,
    generate_am_wave,
    generate_heart,
    generate_pulse_wave,
    generate_sawtooth_wave,
    generate_sine_wave,
    generate_spiral,
    generate_square,
    generate_square_wave,
    generate_star,
    generate_triangle_wave,
    load_preset,
)
from spectral_resynth.series import Point2D


class TestPresets:
    """Test cases for the preset registry."""

    @pytest.mark.parametrize("preset_id", sorted(PRESETS))
    def test_every_preset_loads(self, preset_id):
        preset = PRESETS[preset_id]
        points = load_preset(preset_id)

        assert preset.id == preset_id
        assert preset.name and preset.description
        assert len(points) >= 2
        assert all(isinstance(p, Point2D) for p in points)

    @pytest.mark.parametrize(
        "preset_id, expected",
        [("sine", 200), ("square", 200), ("circle", 200), ("square-shape", 200), ("star", 11)],
    )
    def test_point_counts(self, preset_id, expected):
        assert len(load_preset(preset_id)) == expected

    def test_waveforms_span_canvas(self):
        points = load_preset("sawtooth")
        assert points[0].x == 0.0
        assert points[-1].x == pytest.approx(300.0)

    def test_unknown_preset(self):
        with pytest.raises(KeyError, match="unknown preset"):
            load_preset("hexagon")


class TestShapes:
    """Test cases for the shape generators."""

    def test_star_is_closed(self):
        star = generate_star(80, 40, 6)
        assert len(star) == 13
        assert star[0] == star[-1]

    def test_square_sides(self):
        square = generate_square(size=10.0, points=8, width=0, height=0)
        assert len(square) == 8
        assert square[0] == Point2D(-5.0, -5.0)
        assert square[1] == Point2D(5.0, -5.0)

    @pytest.mark.parametrize(
        "generator",
        [
            generate_sine_wave,
            generate_square_wave,
            generate_triangle_wave,
            generate_sawtooth_wave,
            generate_pulse_wave,
            generate_am_wave,
            generate_spiral,
            generate_heart,
        ],
    )
    @pytest.mark.parametrize("points", [1, 0])
    def test_too_few_points(self, generator, points):
        """Generators that span 0..1 inclusively need at least two samples."""
        with pytest.raises(ValueError, match="points"):
            generator(points=points)
