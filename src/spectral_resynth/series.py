"""Complex Fourier series of closed 2D paths, and their epicycle resynthesis."""

import math
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Iterable, List, NamedTuple, Optional, Sequence, Tuple

import numpy as np
import torch


class Point2D(NamedTuple):
    x: float
    y: float


@dataclass(frozen=True)
class SeriesCoefficient:
    frequency: int
    amplitude: float
    phase: float
    real: float
    imaginary: float


def as_points(path: Iterable) -> List[Point2D]:
    """Accept Point2D, (x, y) pairs, {"x", "y"} mappings or anything with ``.x``/``.y``."""
    points = []
    for p in path:
        if isinstance(p, Mapping):
            points.append(Point2D(float(p["x"]), float(p["y"])))
        elif hasattr(p, "x") and hasattr(p, "y"):
            points.append(Point2D(float(p.x), float(p.y)))
        else:
            x, y = p
            points.append(Point2D(float(x), float(y)))
    return points


def frequency_range(num_terms: int) -> range:
    """Integer frequencies -floor(n/2) .. ceil(n/2), i.e. n + 1 of them."""
    num_terms = max(int(num_terms), 0)
    return range(-(num_terms // 2), -(-num_terms // 2) + 1)


def extract_series_coefficients(path, num_terms: int) -> List[SeriesCoefficient]:
    """
    c_k = (1/N) Σ z[n]·exp(-i2πkn/N) with z = x + iy, for every k in
    ``frequency_range(num_terms)``.

    The result is ordered by descending amplitude (ties keep ascending
    frequency order), so any prefix is the best approximation of that size.
    """
    points = as_points(path)
    n_points = len(points)
    if n_points < 2:
        return []

    z = torch.tensor(
        [complex(p.x, p.y) for p in points], dtype=torch.complex128
    )
    ks = np.asarray(frequency_range(num_terms), dtype=np.int64)

    # c_k only depends on k mod N; numpy's % stays non-negative for k < 0
    spectrum = torch.fft.fft(z) / n_points
    coeffs = spectrum[torch.from_numpy(ks % n_points)]
    amplitude = coeffs.abs()
    phase = coeffs.angle()

    order = torch.sort(amplitude, descending=True, stable=True).indices

    return [
        SeriesCoefficient(
            frequency=int(ks[i]),
            amplitude=amplitude[i].item(),
            phase=phase[i].item(),
            real=coeffs[i].real.item(),
            imaginary=coeffs[i].imag.item(),
        )
        for i in order.tolist()
    ]


def _coefficient_tensors(coefficients: Sequence[SeriesCoefficient]):
    freq = torch.tensor([c.frequency for c in coefficients], dtype=torch.float64)
    amp = torch.tensor([c.amplitude for c in coefficients], dtype=torch.float64)
    phase = torch.tensor([c.phase for c in coefficients], dtype=torch.float64)
    return freq, amp, phase


def resynthesize_path(
    coefficients: Sequence[SeriesCoefficient], num_points: int
) -> List[Point2D]:
    """Sum every coefficient's rotating phasor at ``num_points`` evenly spaced t."""
    if len(coefficients) == 0 or num_points <= 0:
        return []

    freq, amp, phase = _coefficient_tensors(coefficients)
    t = 2.0 * math.pi * torch.arange(num_points, dtype=torch.float64) / num_points

    # [num_points, num_coefficients]
    angle = torch.outer(t, freq) + phase
    xs = (amp * torch.cos(angle)).sum(dim=1)
    ys = (amp * torch.sin(angle)).sum(dim=1)

    return [Point2D(x, y) for x, y in zip(xs.tolist(), ys.tolist())]


def approximate_path(
    path, num_terms: int, num_points: Optional[int] = None
) -> Tuple[List[SeriesCoefficient], List[Point2D]]:
    points = as_points(path)
    coefficients = extract_series_coefficients(points, num_terms)
    if num_points is None:
        num_points = len(points)
    return coefficients, resynthesize_path(coefficients, num_points)


def epicycle_chain(
    coefficients: Sequence[SeriesCoefficient],
    t: float,
    max_circles: Optional[int] = None,
) -> List[Point2D]:
    """
    Circle centres of the epicycle chain at angle ``t``.

    Element 0 is the origin; element i + 1 is where the pen sits after the
    first i + 1 circles, in the order given.
    """
    if max_circles is not None:
        coefficients = coefficients[: max(max_circles, 0)]

    x, y = 0.0, 0.0
    chain = [Point2D(x, y)]
    for c in coefficients:
        angle = c.frequency * t + c.phase
        x += c.amplitude * math.cos(angle)
        y += c.amplitude * math.sin(angle)
        chain.append(Point2D(x, y))
    return chain
