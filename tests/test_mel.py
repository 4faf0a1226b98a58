"""Tests for the triangular mel filterbank."""

import math
import warnings

import numpy as np
import pytest
import torch

from spectral_resynth.mel import (
    MelFilterBank,
    MelFilterBankCache,
    apply_mel_filter_bank,
    build_mel_filter_bank,
    hz_to_mel,
    mel_to_hz,
    plot_filters,
)


@pytest.fixture(scope="module")
def small_bank():
    return build_mel_filter_bank(2048, 44_100, 4, 20.0, 20_000.0)


class TestMelScale:
    """Test cases for the Hz <-> mel conversions."""

    def test_known_values(self):
        assert hz_to_mel(0.0) == pytest.approx(0.0)
        assert hz_to_mel(700.0) == pytest.approx(2595.0 * math.log10(2.0))

    def test_inverse(self):
        freqs = np.array([0.0, 20.0, 440.0, 1000.0, 22_050.0])
        np.testing.assert_allclose(mel_to_hz(hz_to_mel(freqs)), freqs, rtol=1e-12, atol=1e-9)

    def test_tensor_input(self):
        freqs = torch.tensor([100.0, 1000.0], dtype=torch.float64)
        mels = hz_to_mel(freqs)

        assert isinstance(mels, torch.Tensor)
        torch.testing.assert_close(mel_to_hz(mels), freqs)


class TestFilterShape:
    """Test cases for the filter triangles."""

    def test_weights_shape(self, small_bank):
        assert small_bank.weights.shape == (4, 1024)
        assert small_bank.bin_edges.shape == (6,)
        assert torch.all(small_bank.bin_edges[1:] > small_bank.bin_edges[:-1])

    def test_single_peak_at_centre(self, small_bank):
        """Each filter reaches 1.0 exactly once, at its centre bin."""
        edges = small_bank.bin_edges.tolist()
        for i in range(small_bank.num_bands):
            row = small_bank.weights[i]
            peaks = torch.nonzero(row == 1.0).flatten().tolist()
            assert peaks == [edges[i + 1]]

    def test_zero_outside_support(self, small_bank):
        edges = small_bank.bin_edges.tolist()
        for i in range(small_bank.num_bands):
            row = small_bank.weights[i]
            assert torch.all(row[: edges[i]] == 0)
            assert torch.all(row[edges[i + 2] :] == 0)
            assert torch.all((row >= 0) & (row <= 1))

    def test_neighbour_overlap(self, small_bank):
        """Adjacent filters overlap strictly between their centres; i and i+2 never do."""
        edges = small_bank.bin_edges.tolist()
        W = small_bank.weights
        for i in range(small_bank.num_bands - 1):
            both = torch.nonzero((W[i] > 0) & (W[i + 1] > 0)).flatten().tolist()
            assert both == list(range(edges[i + 1] + 1, edges[i + 2]))
        for i in range(small_bank.num_bands - 2):
            assert not torch.any((W[i] > 0) & (W[i + 2] > 0))

    def test_degenerate_bins_stay_finite(self):
        """A tiny FFT collapses edges onto the same bin without NaNs."""
        bank = MelFilterBank(16, 44_100, 8, 20.0)

        assert bank.weights.shape == (8, 8)
        assert torch.isfinite(bank.weights).all()
        assert torch.all((bank.weights >= 0) & (bank.weights <= 1))

    def test_zero_width_rise_is_a_step(self):
        """bin[i] == bin[i+1] < bin[i+2]: full weight at the centre, then a ramp down."""
        bank = MelFilterBank(256, 44_100, 40, 0.0)
        edges = bank.bin_edges.tolist()
        W = bank.weights

        steps = [i for i in range(bank.num_bands) if edges[i] == edges[i + 1] < edges[i + 2]]
        assert steps

        for i in steps:
            left, centre, right = edges[i], edges[i + 1], edges[i + 2]
            assert W[i, centre].item() == 1.0
            assert torch.all(W[i, :centre] == 0)
            expected = [(right - j) / (right - centre) for j in range(centre, right)]
            assert W[i, centre:right].tolist() == pytest.approx(expected)
            assert torch.all(W[i, right:] == 0)

    def test_zero_width_fall_keeps_rise(self):
        """bin[i] < bin[i+1] == bin[i+2]: the rise stays, nothing from the centre on."""
        bank = MelFilterBank(256, 44_100, 40, 0.0)
        edges = bank.bin_edges.tolist()
        W = bank.weights

        cliffs = [i for i in range(bank.num_bands) if edges[i] < edges[i + 1] == edges[i + 2]]
        assert cliffs

        for i in cliffs:
            left, centre = edges[i], edges[i + 1]
            expected = [(j - left) / (centre - left) for j in range(left, centre)]
            assert W[i, left:centre].tolist() == pytest.approx(expected)
            assert torch.all(W[i, centre:] == 0)
            assert torch.all(W[i, :left] == 0)

    def test_labels(self, small_bank):
        assert len(small_bank.note_names) == small_bank.num_bands
        assert all(isinstance(name, str) and name for name in small_bank.note_names)

        centres = small_bank.center_freqs
        assert torch.all(centres[1:] > centres[:-1])
        assert centres[0] > small_bank.min_freq
        assert centres[-1] < small_bank.max_freq

    def test_default_max_is_nyquist(self):
        bank = MelFilterBank(1024, 16_000, 20)
        assert bank.max_freq == 8000.0


class TestParameters:
    """Test cases for construction-parameter checks."""

    @pytest.mark.parametrize(
        "kwargs",
        [
            dict(fft_size=1),
            dict(num_bands=0),
            dict(sample_rate=0),
            dict(min_freq=5000.0, max_freq=1000.0),
            dict(min_freq=3000.0, max_freq=3000.0),
        ],
    )
    def test_invalid(self, kwargs):
        params = dict(fft_size=1024, sample_rate=44_100, num_bands=16, min_freq=20.0, max_freq=8000.0)
        params.update(kwargs)
        with pytest.raises(ValueError):
            build_mel_filter_bank(**params)

    def test_negative_min_is_clamped(self):
        with pytest.warns(UserWarning, match="min_freq"):
            bank = build_mel_filter_bank(1024, 44_100, 16, -10.0, 8000.0)
        assert bank.min_freq == 0.0

    def test_max_above_nyquist_is_clamped(self):
        with pytest.warns(UserWarning, match="Nyquist"):
            bank = build_mel_filter_bank(1024, 44_100, 16, 20.0, 30_000.0)
        assert bank.max_freq == 22_050.0

    def test_valid_params_do_not_warn(self):
        with warnings.catch_warnings():
            warnings.simplefilter("error")
            build_mel_filter_bank(1024, 44_100, 16, 20.0, 22_050.0)


class TestApply:
    """Test cases for applying the bank to dB spectra."""

    def test_quiet_spectrum_reads_zero(self):
        """-100 dB everywhere sums well below 1, so every band reads 0."""
        bank = MelFilterBank(2048, 44_100, 64)
        mel = apply_mel_filter_bank([-100.0] * 1024, bank)

        assert mel == [0.0] * 64

    def test_never_negative(self):
        bank = MelFilterBank(1024, 44_100, 32)
        spectrum = torch.rand(10, 512, dtype=torch.float64) * -120.0

        with torch.no_grad():
            mel = bank(spectrum)
        assert mel.shape == (10, 32)
        assert torch.all(mel >= 0)

    def test_unfloored_log_goes_negative(self):
        bank = MelFilterBank(2048, 44_100, 64)
        mel = apply_mel_filter_bank([-100.0] * 1024, bank, floor_at_zero=False)
        assert all(v < 0 for v in mel)

    @pytest.mark.parametrize("floor_at_zero", [True, False])
    def test_silent_spectrum(self, floor_at_zero):
        """-inf dB means zero magnitude, which reads 0 rather than -inf."""
        bank = MelFilterBank(512, 22_050, 12)
        mel = apply_mel_filter_bank([-math.inf] * 256, bank, floor_at_zero=floor_at_zero)
        assert mel == [0.0] * 12

    def test_matches_manual_sum(self):
        """log10 of the weighted linear magnitudes, floored at zero."""
        bank = MelFilterBank(1024, 44_100, 24, 40.0, 16_000.0)
        rng = np.random.default_rng(7)
        spectrum_db = rng.uniform(-60.0, 20.0, 512)

        weights = bank.weights.numpy()
        expected = np.log10(np.maximum(weights @ (10.0 ** (spectrum_db / 20.0)), 1.0))

        np.testing.assert_allclose(apply_mel_filter_bank(spectrum_db, bank), expected, rtol=1e-10)

    def test_wrong_length(self):
        bank = MelFilterBank(1024, 44_100, 16)
        with pytest.raises(ValueError, match="512"):
            apply_mel_filter_bank([0.0] * 513, bank)


class TestCache:
    """Test cases for MelFilterBankCache."""

    def test_reuses_bank(self):
        cache = MelFilterBankCache()
        assert cache.bank is None

        first = cache.get(1024, 44_100, 16, 20.0, 8000.0)
        second = cache.get(1024, 44_100, 16, 20.0, 8000.0)

        assert first is second
        assert cache.builds == 1
        assert cache.bank is first

    def test_rebuilds_on_change(self):
        cache = MelFilterBankCache()
        first = cache.get(1024, 44_100, 16, 20.0, 8000.0)
        second = cache.get(1024, 44_100, 32, 20.0, 8000.0)

        assert first is not second
        assert second.num_bands == 32
        assert cache.builds == 2

    def test_invalidate(self):
        cache = MelFilterBankCache()
        first = cache.get(512, 22_050, 8, 20.0, 11_025.0)
        cache.invalidate()

        assert cache.bank is None
        assert cache.get(512, 22_050, 8, 20.0, 11_025.0) is not first
        assert cache.builds == 2


class TestPlotting:
    """Test cases for plot_filters."""

    def test_plot_filters(self, small_bank):
        matplotlib = pytest.importorskip("matplotlib")
        matplotlib.use("Agg")
        import matplotlib.pyplot as plt

        fig = plot_filters(small_bank, band_idx_to_show=[0, 2], show=False)
        try:
            assert len(fig.axes) == 1
            assert len(fig.axes[0].get_lines()) == 4
        finally:
            plt.close(fig)
