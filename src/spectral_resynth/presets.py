"""Procedural signals and closed shapes to feed the transforms.

Waveforms are sampled left to right across the canvas (``y`` grows
downwards, centred on ``height / 2``); shapes are centred on the canvas.
"""

import math
from dataclasses import dataclass
from typing import Callable, Dict, List

from .series import Point2D

DEFAULT_WIDTH = 300
DEFAULT_HEIGHT = 300
DEFAULT_POINTS = 200


def _check_points(points: int) -> None:
    if points < 2:
        raise ValueError(f"points must be >= 2, got {points}")


def _x_positions(points: int, width: float) -> List[float]:
    _check_points(points)
    return [(i / (points - 1)) * width for i in range(points)]


def generate_sine_wave(
    amplitude=50.0, frequency=1.0, phase=0.0, points=100, width=300, height=300
) -> List[Point2D]:
    center_y = height / 2
    return [
        Point2D(
            x,
            center_y
            - amplitude * math.sin((i / (points - 1)) * 2 * math.pi * frequency + phase),
        )
        for i, x in enumerate(_x_positions(points, width))
    ]


def generate_square_wave(
    amplitude=50.0, frequency=1.0, duty_cycle=0.5, points=100, width=300, height=300
) -> List[Point2D]:
    center_y = height / 2
    result = []
    for i, x in enumerate(_x_positions(points, width)):
        cycle_position = ((i / (points - 1)) * frequency) % 1
        result.append(Point2D(x, center_y - amplitude * (1 if cycle_position < duty_cycle else -1)))
    return result


def generate_triangle_wave(
    amplitude=50.0, frequency=1.0, phase=0.0, points=100, width=300, height=300
) -> List[Point2D]:
    center_y = height / 2
    result = []
    for i, x in enumerate(_x_positions(points, width)):
        position = ((i / (points - 1)) * frequency + phase) % 1
        value = position * 2 if position < 0.5 else 1 - (position - 0.5) * 2
        result.append(Point2D(x, center_y - amplitude * (value * 2 - 1)))
    return result


def generate_sawtooth_wave(
    amplitude=50.0, frequency=1.0, rising=True, points=100, width=300, height=300
) -> List[Point2D]:
    center_y = height / 2
    result = []
    for i, x in enumerate(_x_positions(points, width)):
        position = ((i / (points - 1)) * frequency) % 1
        value = position if rising else 1 - position
        result.append(Point2D(x, center_y - amplitude * (value * 2 - 1)))
    return result


def generate_pulse_wave(
    amplitude=50.0, frequency=1.0, pulse_width=0.2, points=100, width=300, height=300
) -> List[Point2D]:
    center_y = height / 2
    result = []
    for i, x in enumerate(_x_positions(points, width)):
        cycle_position = ((i / (points - 1)) * frequency) % 1
        value = 1 if cycle_position < pulse_width else -0.2
        result.append(Point2D(x, center_y - amplitude * value))
    return result


def generate_am_wave(
    amplitude=50.0, carrier_ratio=8, points=100, width=300, height=300
) -> List[Point2D]:
    """Carrier at ``carrier_ratio`` times the modulator, depth 0.5."""
    center_y = height / 2
    result = []
    for i, x in enumerate(_x_positions(points, width)):
        t = (i / (points - 1)) * 2 * math.pi
        carrier = math.sin(t * carrier_ratio)
        modulator = 0.5 + 0.5 * math.sin(t)
        result.append(Point2D(x, center_y - amplitude * carrier * modulator))
    return result


def generate_circle(radius=80.0, points=100, width=300, height=300) -> List[Point2D]:
    cx, cy = width / 2, height / 2
    return [
        Point2D(
            cx + radius * math.cos(2 * math.pi * i / points),
            cy + radius * math.sin(2 * math.pi * i / points),
        )
        for i in range(points)
    ]


def generate_square(size=100.0, points=100, width=300, height=300) -> List[Point2D]:
    """Square outline, clockwise from the top-left corner, ceil(points / 4) per side."""
    cx, cy = width / 2, height / 2
    half = size / 2
    per_side = math.ceil(points / 4)
    steps = [i / (per_side - 1) if per_side > 1 else 0.0 for i in range(per_side)]

    result = [Point2D(cx - half + size * r, cy - half) for r in steps]
    result += [Point2D(cx + half, cy - half + size * r) for r in steps]
    result += [Point2D(cx + half - size * r, cy + half) for r in steps]
    result += [Point2D(cx - half, cy + half - size * r) for r in steps]
    return result


def generate_star(
    outer_radius=80.0, inner_radius=40.0, num_points=5, width=300, height=300
) -> List[Point2D]:
    """Alternating outer/inner vertices, closed by repeating the first one."""
    cx, cy = width / 2, height / 2
    total = num_points * 2
    result = []
    for i in range(total):
        radius = outer_radius if i % 2 == 0 else inner_radius
        angle = (i / total) * 2 * math.pi
        result.append(Point2D(cx + radius * math.cos(angle), cy + radius * math.sin(angle)))
    if result:
        result.append(result[0])
    return result


def generate_spiral(
    start_radius=10.0, end_radius=80.0, turns=3, points=200, width=300, height=300
) -> List[Point2D]:
    _check_points(points)
    cx, cy = width / 2, height / 2
    result = []
    for i in range(points):
        t = i / (points - 1)
        radius = start_radius + (end_radius - start_radius) * t
        angle = t * turns * 2 * math.pi
        result.append(Point2D(cx + radius * math.cos(angle), cy + radius * math.sin(angle)))
    return result


def generate_heart(size=8.0, points=100, width=300, height=300) -> List[Point2D]:
    _check_points(points)
    cx, cy = width / 2, height / 2
    result = []
    for i in range(points):
        t = (i / (points - 1)) * 2 * math.pi
        x = cx + size * 16 * math.sin(t) ** 3
        y = cy - size * (
            13 * math.cos(t) - 5 * math.cos(2 * t) - 2 * math.cos(3 * t) - math.cos(4 * t)
        )
        result.append(Point2D(x, y))
    return result


def _double_sine() -> List[Point2D]:
    base = generate_sine_wave(30, 1, 0, DEFAULT_POINTS, DEFAULT_WIDTH, DEFAULT_HEIGHT)
    return [
        Point2D(p.x, p.y + 20 * math.sin((i / (DEFAULT_POINTS - 1)) * 2 * math.pi * 3))
        for i, p in enumerate(base)
    ]


@dataclass(frozen=True)
class Preset:
    id: str
    name: str
    description: str
    factory: Callable[[], List[Point2D]]

    def points(self) -> List[Point2D]:
        return self.factory()


_canvas = dict(width=DEFAULT_WIDTH, height=DEFAULT_HEIGHT)

PRESETS: Dict[str, Preset] = {
    p.id: p
    for p in [
        Preset(
            "sine",
            "Sine Wave",
            "The fundamental wave form in Fourier analysis",
            lambda: generate_sine_wave(50, 2, 0, points=DEFAULT_POINTS, **_canvas),
        ),
        Preset(
            "square",
            "Square Wave",
            "Contains only odd harmonics with amplitudes that fall off as 1/n",
            lambda: generate_square_wave(50, 2, 0.5, points=DEFAULT_POINTS, **_canvas),
        ),
        Preset(
            "triangle",
            "Triangle Wave",
            "Contains odd harmonics with amplitudes falling off as 1/n²",
            lambda: generate_triangle_wave(50, 2, 0, points=DEFAULT_POINTS, **_canvas),
        ),
        Preset(
            "sawtooth",
            "Sawtooth Wave",
            "Contains all harmonics with amplitudes falling off as 1/n",
            lambda: generate_sawtooth_wave(50, 2, True, points=DEFAULT_POINTS, **_canvas),
        ),
        Preset(
            "pulse",
            "Pulse Train",
            "Series of short pulses with rich harmonic content",
            lambda: generate_pulse_wave(50, 3, 0.1, points=DEFAULT_POINTS, **_canvas),
        ),
        Preset(
            "double-sine",
            "Double Frequency",
            "A combination of two sine waves with different frequencies",
            _double_sine,
        ),
        Preset(
            "circle",
            "Circle",
            "Perfect circle requiring only one frequency in complex Fourier series",
            lambda: generate_circle(80, points=DEFAULT_POINTS, **_canvas),
        ),
        Preset(
            "square-shape",
            "Square Shape",
            "Geometric shape requiring many frequencies for sharp corners",
            lambda: generate_square(120, points=DEFAULT_POINTS, **_canvas),
        ),
        Preset(
            "star",
            "Star",
            "Five-pointed star with sharp cusps requiring high frequency components",
            lambda: generate_star(80, 40, 5, **_canvas),
        ),
        Preset(
            "spiral",
            "Spiral",
            "Spiral with continuously changing curvature",
            lambda: generate_spiral(10, 80, 3, points=DEFAULT_POINTS, **_canvas),
        ),
        Preset(
            "heart",
            "Heart Shape",
            "Parametric heart curve with interesting Fourier decomposition",
            lambda: generate_heart(8, points=DEFAULT_POINTS, **_canvas),
        ),
        Preset(
            "am-wave",
            "Amplitude Modulation",
            "Carrier wave with amplitude modulated by a slower wave",
            lambda: generate_am_wave(50, 8, points=DEFAULT_POINTS, **_canvas),
        ),
    ]
}


def load_preset(preset_id: str) -> List[Point2D]:
    if preset_id not in PRESETS:
        raise KeyError(
            f"unknown preset {preset_id!r}; choose from {', '.join(sorted(PRESETS))}"
        )
    return PRESETS[preset_id].points()
