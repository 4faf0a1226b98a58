"""Spectral Resynth - small Fourier analysis and resynthesis engine.

This package provides a normalized DFT with frequency-domain masking, complex
Fourier-series extraction and epicycle resynthesis for 2D paths, and a
triangular mel filterbank for turning dB spectra into perceptual bands.
"""

__version__ = "0.1.0"

from .analyser import SpectrumAnalyser, mel_spectrogram
from .dft import (
    FilterCutoff,
    FrequencyComponent,
    NormalizedDFT,
    apply_frequency_mask,
    filter_signal,
    forward_transform,
    inverse_transform,
)
from .mel import (
    MelFilterBank,
    MelFilterBankCache,
    apply_mel_filter_bank,
    build_mel_filter_bank,
    hz_to_mel,
    mel_to_hz,
    plot_filters,
)
from .presets import PRESETS, load_preset
from .series import (
    Point2D,
    SeriesCoefficient,
    approximate_path,
    epicycle_chain,
    extract_series_coefficients,
    resynthesize_path,
)

__all__ = [
    "FilterCutoff",
    "FrequencyComponent",
    "MelFilterBank",
    "MelFilterBankCache",
    "NormalizedDFT",
    "PRESETS",
    "Point2D",
    "SeriesCoefficient",
    "SpectrumAnalyser",
    "apply_frequency_mask",
    "apply_mel_filter_bank",
    "approximate_path",
    "build_mel_filter_bank",
    "epicycle_chain",
    "extract_series_coefficients",
    "filter_signal",
    "forward_transform",
    "hz_to_mel",
    "inverse_transform",
    "load_preset",
    "mel_spectrogram",
    "mel_to_hz",
    "plot_filters",
    "resynthesize_path",
]
