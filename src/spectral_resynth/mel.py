import warnings
from typing import List, Optional, Sequence, Tuple

import librosa
import numpy as np
import torch
import torch.nn as nn


DEFAULT_FFT_SIZE = 2048
DEFAULT_SAMPLE_RATE = 44_100
DEFAULT_NUM_BANDS = 64
DEFAULT_MIN_FREQ = 20.0


# ──────────────────────────────────────────────────────────────────────────
#  mel scale (HTK form)
# ──────────────────────────────────────────────────────────────────────────
def hz_to_mel(freq):
    if isinstance(freq, torch.Tensor):
        return 2595.0 * torch.log10(1.0 + freq / 700.0)
    return 2595.0 * np.log10(1.0 + np.asarray(freq, dtype=np.float64) / 700.0)


def mel_to_hz(mel):
    if isinstance(mel, torch.Tensor):
        return 700.0 * (10.0 ** (mel / 2595.0) - 1.0)
    return 700.0 * (10.0 ** (np.asarray(mel, dtype=np.float64) / 2595.0) - 1.0)


def _hz_to_note(freq: float) -> str:
    if freq <= 0:
        return "DC"
    midi_f = librosa.hz_to_midi(freq)  # fractional MIDI
    base = int(round(midi_f))  # nearest semitone
    cents = int(round((midi_f - base) * 100))  # −50…+50
    name = librosa.midi_to_note(base, octave=True, unicode=False)
    return name if cents == 0 else f"{name}{'+' if cents > 0 else ''}{cents}¢"


def _check_params(
    fft_size: int,
    sample_rate: float,
    num_bands: int,
    min_freq: float,
    max_freq: float,
) -> Tuple[float, float]:
    if int(fft_size) != fft_size or fft_size < 2:
        raise ValueError(f"fft_size must be an integer >= 2, got {fft_size}")
    if int(num_bands) != num_bands or num_bands < 1:
        raise ValueError(f"num_bands must be an integer >= 1, got {num_bands}")
    if sample_rate <= 0:
        raise ValueError(f"sample_rate must be > 0, got {sample_rate}")

    nyquist = sample_rate / 2
    if min_freq < 0:
        warnings.warn(f"min_freq {min_freq} Hz clamped to 0 Hz", UserWarning)
        min_freq = 0.0
    if max_freq > nyquist:
        warnings.warn(
            f"max_freq {max_freq} Hz clamped to Nyquist ({nyquist} Hz)", UserWarning
        )
        max_freq = nyquist
    if min_freq >= max_freq:
        raise ValueError(
            f"min_freq must be below max_freq, got {min_freq} >= {max_freq} Hz"
        )
    return float(min_freq), float(max_freq)


# ──────────────────────────────────────────────────────────────────────────
#  filterbank
# ──────────────────────────────────────────────────────────────────────────
class MelFilterBank(nn.Module):
    """
    Overlapping triangular filters, evenly spaced in mel, over linear FFT bins.

    Parameters
    ----------
    fft_size    : int   – FFT size; the bank covers fft_size // 2 bins
    sample_rate : float
    num_bands   : int   – number of triangles
    min_freq    : float – lower edge of the first triangle (Hz)
    max_freq    : float – upper edge of the last triangle (Hz, default Nyquist)

    The weights are built once and kept in the ``weights`` buffer
    ([num_bands, fft_size // 2]); the module holds no other state.
    """

    def __init__(
        self,
        fft_size: int = DEFAULT_FFT_SIZE,
        sample_rate: float = DEFAULT_SAMPLE_RATE,
        num_bands: int = DEFAULT_NUM_BANDS,
        min_freq: float = DEFAULT_MIN_FREQ,
        max_freq: Optional[float] = None,
    ):
        super().__init__()

        if max_freq is None:
            max_freq = sample_rate / 2

        min_freq, max_freq = _check_params(
            fft_size, sample_rate, num_bands, min_freq, max_freq
        )

        self.fft_size = int(fft_size)
        self.sample_rate = sample_rate
        self.num_bands = int(num_bands)
        self.min_freq = min_freq
        self.max_freq = max_freq
        self.n_bins = self.fft_size // 2
        self.dtype = torch.float64

        # ── mel edges → Hz → bins ───────────────────────────────────────
        mel_points = np.linspace(
            hz_to_mel(min_freq), hz_to_mel(max_freq), self.num_bands + 2
        )
        hz_points = mel_to_hz(mel_points)
        bins = np.floor((self.fft_size + 1) * hz_points / sample_rate).astype(np.int64)

        # ── triangles ───────────────────────────────────────────────────
        W = np.zeros((self.num_bands, self.n_bins), np.float64)
        j = np.arange(self.n_bins)

        for i in range(self.num_bands):
            left, centre, right = bins[i], bins[i + 1], bins[i + 2]

            # zero-width sides fall back to a unit denominator
            rise = max(centre - left, 1)
            fall = max(right - centre, 1)

            rising = (j >= left) & (j < centre)
            falling = (j >= centre) & (j < right)
            W[i, rising] = (j[rising] - left) / rise
            W[i, falling] = (right - j[falling]) / fall

        assert (W < 0).sum() == 0, "Some filters have negative weight"

        # ── constant buffers & labels ────────────────────────────────────
        self.register_buffer("weights", torch.from_numpy(W), persistent=True)
        self.register_buffer("bin_edges", torch.from_numpy(bins), persistent=True)
        self.register_buffer(
            "center_freqs",
            torch.from_numpy(hz_points[1:-1].astype(np.float64)),
            persistent=True,
        )
        self.note_names: List[str] = [_hz_to_note(f) for f in hz_points[1:-1]]

    def forward(self, spectrum_db: torch.Tensor, floor_at_zero: bool = True) -> torch.Tensor:
        """
        spectrum_db : [..., fft_size // 2]  – dB magnitudes, one per FFT bin
        floor_at_zero : bool – clamp the log at 0, so bands whose weighted sum
                        is at most 1 read 0; when False only empty sums read 0
        Returns
        -------
        mel : [..., num_bands] – log10 of the filtered linear magnitude
        """
        if spectrum_db.shape[-1] != self.n_bins:
            raise ValueError(
                f"expected {self.n_bins} spectrum bins, got {spectrum_db.shape[-1]}"
            )

        magnitude = 10.0 ** (spectrum_db.to(self.dtype) / 20.0)
        sums = magnitude @ self.weights.T
        if floor_at_zero:
            return torch.log10(torch.clamp(sums, min=1.0))

        tiny = torch.finfo(self.dtype).tiny
        return torch.where(
            sums > 0, torch.log10(torch.clamp(sums, min=tiny)), torch.zeros_like(sums)
        )


def build_mel_filter_bank(
    fft_size: int,
    sample_rate: float,
    num_bands: int,
    min_freq: float,
    max_freq: float,
) -> MelFilterBank:
    return MelFilterBank(fft_size, sample_rate, num_bands, min_freq, max_freq)


def apply_mel_filter_bank(
    spectrum_db: Sequence[float], bank: MelFilterBank, floor_at_zero: bool = True
) -> List[float]:
    """One dB spectrum frame in, ``bank.num_bands`` mel values out."""
    spectrum = torch.as_tensor(np.asarray(spectrum_db, dtype=np.float64))
    with torch.no_grad():
        return bank(spectrum, floor_at_zero=floor_at_zero).tolist()


class MelFilterBankCache:
    """
    Caller-owned holder for the current filterbank.

    ``get`` returns the cached bank while its construction parameters are
    unchanged and rebuilds it otherwise; ``builds`` counts constructions.
    """

    def __init__(self):
        self._bank: Optional[MelFilterBank] = None
        self._key = None
        self.builds = 0

    def get(
        self,
        fft_size: int,
        sample_rate: float,
        num_bands: int,
        min_freq: float,
        max_freq: float,
    ) -> MelFilterBank:
        key = (fft_size, sample_rate, num_bands, min_freq, max_freq)
        if self._bank is None or key != self._key:
            self._bank = build_mel_filter_bank(*key)
            self._key = key
            self.builds += 1
        return self._bank

    def invalidate(self) -> None:
        self._bank = None
        self._key = None

    @property
    def bank(self) -> Optional[MelFilterBank]:
        return self._bank


# ──────────────────────────────────────────────────────────────────────────
#  plotting helper – draw selected triangles, with centre dots
# ──────────────────────────────────────────────────────────────────────────
def _import_matplotlib():
    try:
        import matplotlib.pyplot as plt

        return plt
    except ImportError:
        raise ImportError(
            "matplotlib is required for plotting. Install it with: "
            "pip install 'spectral-resynth[plot]' or pip install matplotlib"
        )


def plot_filters(
    bank: MelFilterBank,
    band_idx_to_show: Sequence[int],
    x_max_hz: Optional[float] = None,
    legend: bool = True,
    x_min_hz: Optional[float] = None,
    title_override: Optional[str] = None,
    show: bool = True,
):
    """
    bank   – MelFilterBank instance
    band_idx_to_show – which filters (by index) to draw
    x_max_hz – right-hand x-axis limit (default: bank.max_freq)
    x_min_hz – left-hand x-axis limit (default: 0 Hz)
    """
    plt = _import_matplotlib()

    W = bank.weights.cpu().numpy()
    f_bins = np.arange(bank.n_bins) * bank.sample_rate / bank.fft_size
    centers = bank.center_freqs.cpu().numpy()
    names = bank.note_names

    lower = 0.0 if x_min_hz is None else x_min_hz
    upper = bank.max_freq if x_max_hz is None else x_max_hz

    fig = plt.figure(figsize=(9, 4))
    for k in band_idx_to_show:
        (line,) = plt.plot(f_bins, W[k], label=f"{names[k]} ({centers[k]:.2f} Hz)")
        plt.plot(centers[k], 0, marker="o", color=line.get_color(), markersize=8)

    plt.xlabel("Frequency (Hz)")
    plt.ylabel("Gain")
    if not title_override:
        plt.title(
            f"Mel filters ({bank.num_bands} bands, FFT N: {bank.fft_size}, "
            f"{bank.min_freq:.0f}–{bank.max_freq:.0f} Hz)"
        )
    else:
        plt.title(title_override)
    if legend:
        plt.legend(ncol=1, fontsize=10, loc="upper right")
    plt.tight_layout()

    plt.xlim(lower, upper)
    plt.ylim(0, 1.05)
    if show:
        plt.show()
    return fig
