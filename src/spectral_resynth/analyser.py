"""Decibel spectra in the shape the mel filterbank expects.

``SpectrumAnalyser`` follows the browser AnalyserNode that the live
spectrogram front-ends read from: Blackman-windowed frame, magnitude scaled
by 1/N, exponential smoothing across calls, then 20·log10.
"""

from typing import Optional

import numpy as np
import torch
import torch.nn as nn
import torch.nn.functional as F
import torchaudio

from .mel import MelFilterBank

DEFAULT_SMOOTHING = 0.8
DEFAULT_MIN_DECIBELS = -100.0
DEFAULT_MAX_DECIBELS = -30.0

# silent bins read this instead of -inf
DB_FLOOR = -200.0


class SpectrumAnalyser(nn.Module):
    """
    Parameters
    ----------
    fft_size                : int   – power of two, 32…32768
    smoothing_time_constant : float – 0 (no smoothing) … 1 (frozen)
    min_decibels            : float – maps to byte 0
    max_decibels            : float – maps to byte 255
    """

    AMIN = 10.0 ** (DB_FLOOR / 20.0)

    def __init__(
        self,
        fft_size: int = 2048,
        smoothing_time_constant: float = DEFAULT_SMOOTHING,
        min_decibels: float = DEFAULT_MIN_DECIBELS,
        max_decibels: float = DEFAULT_MAX_DECIBELS,
    ):
        super().__init__()

        if fft_size < 32 or fft_size > 32768 or fft_size & (fft_size - 1):
            raise ValueError(f"fft_size must be a power of two in [32, 32768], got {fft_size}")
        if not 0.0 <= smoothing_time_constant <= 1.0:
            raise ValueError(
                f"smoothing_time_constant must be in [0, 1], got {smoothing_time_constant}"
            )
        if min_decibels >= max_decibels:
            raise ValueError(
                f"min_decibels must be below max_decibels, got {min_decibels} >= {max_decibels}"
            )

        self.fft_size = fft_size
        self.n_bins = fft_size // 2
        self.smoothing_time_constant = smoothing_time_constant
        self.min_decibels = min_decibels
        self.max_decibels = max_decibels
        self.dtype = torch.float64

        window = torch.blackman_window(fft_size, periodic=True, dtype=self.dtype)
        self.register_buffer("window", window)
        self.register_buffer("previous", torch.zeros(self.n_bins, dtype=self.dtype))

    def reset(self) -> None:
        self.previous.zero_()

    def _prepare(self, frame) -> torch.Tensor:
        frame = torch.as_tensor(np.asarray(frame, dtype=np.float64)).reshape(-1)
        if frame.numel() >= self.fft_size:
            return frame[-self.fft_size :]
        return F.pad(frame, (self.fft_size - frame.numel(), 0))

    def _smoothed_magnitude(self, frame) -> torch.Tensor:
        windowed = self._prepare(frame) * self.window
        mag = torch.abs(torch.fft.rfft(windowed, n=self.fft_size))[: self.n_bins]
        mag = mag / self.fft_size

        tau = self.smoothing_time_constant
        smoothed = tau * self.previous + (1.0 - tau) * mag
        self.previous.copy_(smoothed)
        return smoothed

    def get_float_frequency_data(self, frame) -> torch.Tensor:
        """[fft_size] samples -> [fft_size // 2] dB values."""
        with torch.no_grad():
            smoothed = self._smoothed_magnitude(frame)
            return torchaudio.functional.amplitude_to_DB(
                smoothed,
                multiplier=20.0,
                amin=self.AMIN,
                db_multiplier=0.0,
                top_db=None,
            )

    def get_byte_frequency_data(self, frame) -> torch.Tensor:
        """[fft_size] samples -> [fft_size // 2] uint8, min_decibels..max_decibels -> 0..255."""
        db = self.get_float_frequency_data(frame)
        scale = 255.0 / (self.max_decibels - self.min_decibels)
        scaled = torch.clamp((db - self.min_decibels) * scale, 0.0, 255.0)
        return torch.floor(scaled).to(torch.uint8)


def mel_spectrogram(
    waveform,
    bank: MelFilterBank,
    hop_size: int,
    smoothing_time_constant: Optional[float] = None,
    center: bool = True,
    analyser: Optional[SpectrumAnalyser] = None,
    floor_at_zero: bool = True,
) -> torch.Tensor:
    """
    Frame a mono waveform, run each frame through an analyser and the bank.

    waveform : [num_samples]
    smoothing_time_constant : float – smoothing for the analyser built here
                              (default 0); pass it on the analyser instead
                              when supplying one, giving both is an error
    Returns
    -------
    mel : [num_bands, num_frames]
    """
    if hop_size is None or hop_size <= 0:
        raise RuntimeError(f"mel_spectrogram() requires hop_size > 0, got {hop_size}")

    if analyser is None:
        if smoothing_time_constant is None:
            smoothing_time_constant = 0.0
        analyser = SpectrumAnalyser(
            bank.fft_size, smoothing_time_constant=smoothing_time_constant
        )
    elif smoothing_time_constant is not None:
        raise RuntimeError(
            "smoothing_time_constant applies to the analyser mel_spectrogram() builds; "
            "set it on the supplied analyser instead"
        )
    elif analyser.fft_size != bank.fft_size:
        raise RuntimeError(
            f"analyser fft_size {analyser.fft_size} does not match bank fft_size {bank.fft_size}"
        )

    waveform = torch.as_tensor(np.asarray(waveform, dtype=np.float64)).reshape(-1)
    if center:
        pad_amount = bank.fft_size // 2
        waveform = F.pad(waveform, (pad_amount, pad_amount))

    if waveform.numel() < bank.fft_size:
        return torch.zeros(bank.num_bands, 0, dtype=torch.float64)

    # [num_frames, fft_size]
    frames = waveform.unfold(0, bank.fft_size, hop_size)
    spectra = torch.stack([analyser.get_float_frequency_data(f) for f in frames])

    with torch.no_grad():
        mel = bank(spectra, floor_at_zero=floor_at_zero)
    return mel.T
