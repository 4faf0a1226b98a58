"""Normalized DFT of real signals, its inverse, and frequency-domain masking."""

from dataclasses import dataclass, replace
from functools import lru_cache
from typing import List, Sequence, Tuple

import numpy as np
import torch

from .series import Point2D, as_points


@dataclass(frozen=True)
class FrequencyComponent:
    """One DFT bin: index k, normalized real/imaginary parts, magnitude, phase."""

    frequency_index: int
    real: float
    imaginary: float
    magnitude: float
    phase: float


@dataclass(frozen=True)
class FilterCutoff:
    """
    Band limits as fractions of the bin count (not Hz).

    A component at normalized position ``index / N`` survives iff
    ``high_pass_fraction <= index / N <= low_pass_fraction``.
    """

    low_pass_fraction: float = 1.0
    high_pass_fraction: float = 0.0

    def keeps(self, index: int, total: int) -> bool:
        position = index / total
        return self.high_pass_fraction <= position <= self.low_pass_fraction


FULL_PASS = FilterCutoff(low_pass_fraction=1.0, high_pass_fraction=0.0)


class NormalizedDFT(torch.nn.Module):
    """
    Normalized DFT over the full N-length spectrum, and its inverse evaluated
    at M output samples, both computed with ``torch.fft``.

    No conjugate-symmetric folding is applied on the forward side: the output
    has as many bins as the input has samples, so index ``k`` always lines up
    with frequency position ``k / N``.

    Parameters
    ----------
    frame_size  : int – N, number of input samples per frame
    output_size : int – M, number of samples produced by ``inverse`` (default N)

    The only buffer is ``fold_index`` ([N] int64), mapping each frequency ``k``
    onto ``k mod M``; ``exp(2πi·k·m/M)`` only depends on that residue, so the
    M-point inverse is an M-point FFT of the folded spectrum.
    """

    def __init__(self, frame_size: int, output_size: int = None):
        super(NormalizedDFT, self).__init__()

        if output_size is None:
            output_size = frame_size

        self.frame_size = frame_size
        self.output_size = output_size
        self.dtype = torch.float64

        fold_index = torch.arange(frame_size, dtype=torch.int64) % output_size
        self.register_buffer("fold_index", fold_index)

    def transform(self, frames: torch.Tensor):
        """
        Input: [..., frame_size]
        Output:
            real_part: [..., frame_size]
            imag_part: [..., frame_size]
            magnitude: [..., frame_size]
            phase:     [..., frame_size]
        """
        frames = frames.to(self.dtype)
        spectrum = torch.fft.fft(frames, n=self.frame_size, dim=-1) / self.frame_size

        real_part = spectrum.real
        imag_part = spectrum.imag
        magnitude = torch.sqrt(real_part**2 + imag_part**2)
        phase = torch.atan2(imag_part, real_part)

        return real_part, imag_part, magnitude, phase

    def _fold(self, part: torch.Tensor) -> torch.Tensor:
        # [..., frame_size] -> [..., output_size], summing bins with equal k mod M
        folded = part.new_zeros(*part.shape[:-1], self.output_size)
        return folded.index_add_(part.dim() - 1, self.fold_index, part)

    def inverse(self, real_part: torch.Tensor, imag_part: torch.Tensor) -> torch.Tensor:
        """[..., frame_size] real/imag -> [..., output_size] samples."""
        real_part = real_part.to(self.dtype)
        imag_part = imag_part.to(self.dtype)
        if real_part.shape[-1] != self.frame_size:
            raise ValueError(
                f"expected {self.frame_size} frequency bins, got {real_part.shape[-1]}"
            )

        folded = torch.complex(self._fold(real_part), self._fold(imag_part))
        # ifft divides by M; the sum over components is unnormalized
        return torch.fft.ifft(folded, dim=-1).real * self.output_size


@lru_cache(maxsize=8)
def get_transform(frame_size: int, output_size: int = None) -> NormalizedDFT:
    """Shared, read-only transform for a given (N, M); holds O(N) memory."""
    return NormalizedDFT(frame_size, output_size)


def _as_signal(signal) -> torch.Tensor:
    if isinstance(signal, torch.Tensor):
        return signal.detach().to(torch.float64).reshape(-1)
    return torch.as_tensor(np.asarray(signal, dtype=np.float64).reshape(-1))


def forward_transform(signal) -> List[FrequencyComponent]:
    """Normalized DFT of a real signal, all N bins; empty for N < 2."""
    x = _as_signal(signal)
    n_samples = x.numel()
    if n_samples < 2:
        return []

    with torch.no_grad():
        real, imag, mag, phase = get_transform(n_samples).transform(x)

    return [
        FrequencyComponent(k, re, im, m, ph)
        for k, (re, im, m, ph) in enumerate(
            zip(real.tolist(), imag.tolist(), mag.tolist(), phase.tolist())
        )
    ]


def components_to_tensors(
    components: Sequence[FrequencyComponent],
) -> Tuple[torch.Tensor, torch.Tensor]:
    real = torch.tensor([c.real for c in components], dtype=torch.float64)
    imag = torch.tensor([c.imaginary for c in components], dtype=torch.float64)
    return real, imag


def inverse_transform(
    components: Sequence[FrequencyComponent], output_length: int
) -> List[float]:
    """
    Sum every supplied component back into ``output_length`` samples.

    Position in ``components`` is the frequency index, so masked entries must
    stay in the sequence as zeros rather than be dropped.
    """
    if output_length <= 0 or len(components) == 0:
        return []

    real, imag = components_to_tensors(components)
    with torch.no_grad():
        samples = get_transform(len(components), output_length).inverse(real, imag)
    return samples.tolist()


def _zeroed(component: FrequencyComponent) -> FrequencyComponent:
    return replace(component, real=0.0, imaginary=0.0, magnitude=0.0, phase=0.0)


def apply_frequency_mask(
    components: Sequence[FrequencyComponent], cutoff: FilterCutoff
) -> List[FrequencyComponent]:
    """Return a copy with every out-of-band component zeroed at its own index."""
    total = len(components)
    return [
        c if cutoff.keeps(i, total) else _zeroed(c) for i, c in enumerate(components)
    ]


def filter_signal(points, cutoff: FilterCutoff = FULL_PASS) -> List[Point2D]:
    """
    Band-limit a drawn signal: transform its ``y`` values, mask, and invert
    back to the same length, keeping each point's original ``x``.
    """
    points = as_points(points)
    if len(points) < 2:
        return []

    spectrum = forward_transform([p.y for p in points])
    filtered = inverse_transform(apply_frequency_mask(spectrum, cutoff), len(points))
    return [Point2D(p.x, y) for p, y in zip(points, filtered)]
