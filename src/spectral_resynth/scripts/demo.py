#!/usr/bin/env python3
"""Demo script for Spectral Resynth.

This script walks through the engine: the DFT golden fixture and round trip,
band-limiting a drawn signal, progressive epicycle approximations of a preset
shape, and a mel spectrogram of a synthetic sweep.
"""

import argparse
import sys

import librosa
import numpy as np
import torch

from spectral_resynth import (
    PRESETS,
    FilterCutoff,
    MelFilterBankCache,
    apply_frequency_mask,
    extract_series_coefficients,
    filter_signal,
    forward_transform,
    inverse_transform,
    load_preset,
    mel_spectrogram,
    plot_filters,
    resynthesize_path,
)


def _import_matplotlib():
    """Import matplotlib with helpful error message if not available."""
    try:
        import matplotlib.pyplot as plt

        return plt
    except ImportError:
        raise ImportError(
            "matplotlib is required for plotting demos. Install it with: "
            "pip install 'spectral-resynth[plot]' or pip install matplotlib"
        )


def _mse(a, b) -> float:
    a = np.asarray(a, dtype=np.float64)
    b = np.asarray(b, dtype=np.float64)
    return float(np.mean(np.sum((a - b) ** 2, axis=-1)))


def demo_basic_usage():
    """DFT of the quarter-period cosine fixture, and a round trip."""
    print("=== Basic Usage Demo ===")

    signal = [1.0, 0.0, -1.0, 0.0]
    spectrum = forward_transform(signal)
    for c in spectrum:
        print(
            f"k={c.frequency_index}: real={c.real:+.4f} imag={c.imaginary:+.4f} "
            f"|X|={c.magnitude:.4f} phase={c.phase:+.4f}"
        )

    rng = np.random.default_rng(0)
    noise = rng.standard_normal(256)
    restored = inverse_transform(forward_transform(noise), len(noise))
    print(f"Round trip max error (N=256): {np.max(np.abs(noise - restored)):.3e}")


def demo_filtering(preset_id: str, low: float, high: float, plots: bool):
    """Band-limit a preset waveform in the frequency domain."""
    print("\n=== Frequency Mask Demo ===")

    points = load_preset(preset_id)
    cutoff = FilterCutoff(low_pass_fraction=low, high_pass_fraction=high)
    spectrum = forward_transform([p.y for p in points])
    kept = sum(1 for c in apply_frequency_mask(spectrum, cutoff) if c.magnitude > 0)
    filtered = filter_signal(points, cutoff)

    print(f"Preset: {PRESETS[preset_id].name} ({len(points)} points)")
    print(f"Cutoff: low={low:.2f} high={high:.2f}, {kept}/{len(spectrum)} components kept")

    if not plots:
        return

    plt = _import_matplotlib()
    plt.figure(figsize=(9, 4))
    plt.plot([p.x for p in points], [p.y for p in points], label="original", alpha=0.6)
    plt.plot([p.x for p in filtered], [p.y for p in filtered], label="filtered")
    plt.gca().invert_yaxis()
    plt.title(f"{PRESETS[preset_id].name}: low={low:.2f}, high={high:.2f}")
    plt.legend()
    plt.tight_layout()
    plt.savefig("frequency_mask.png", dpi=150, bbox_inches="tight")
    plt.show()
    print("Saved frequency mask plot as 'frequency_mask.png'")


def demo_epicycles(preset_id: str, num_terms: int, plots: bool):
    """Approximate a preset shape with growing prefixes of its series."""
    print("\n=== Epicycle Approximation Demo ===")

    points = load_preset(preset_id)
    coefficients = extract_series_coefficients(points, num_terms)
    print(f"Preset: {PRESETS[preset_id].name}, {len(coefficients)} coefficients")
    print("| circles | MSE |")
    print("|---------|-----|")

    prefixes = sorted({1, 2, 4, 8, 16, 32, len(coefficients)} & set(range(1, len(coefficients) + 1)))
    approximations = {}
    for k in prefixes:
        approx = resynthesize_path(coefficients[:k], len(points))
        approximations[k] = approx
        print(f"| {k} | {_mse(points, approx):.4f} |")

    if not plots:
        return

    plt = _import_matplotlib()
    fig, axes = plt.subplots(1, len(prefixes), figsize=(3 * len(prefixes), 3))
    if len(prefixes) == 1:
        axes = [axes]
    for ax, k in zip(axes, prefixes):
        ax.plot([p.x for p in points], [p.y for p in points], color="grey", alpha=0.4)
        ax.plot([p.x for p in approximations[k]], [p.y for p in approximations[k]])
        ax.set_title(f"{k} circles")
        ax.set_aspect("equal")
        ax.invert_yaxis()
        ax.axis("off")
    plt.tight_layout()
    plt.savefig("epicycles.png", dpi=150, bbox_inches="tight")
    plt.show()
    print("Saved epicycle plot as 'epicycles.png'")


def demo_mel_spectrogram(num_bands: int, plots: bool):
    """Mel spectrogram of a logarithmic sweep, via the analyser."""
    print("\n=== Mel Spectrogram Demo ===")

    sample_rate, fft_size, hop_size = 44_100, 2048, 512
    sweep = librosa.chirp(fmin=110, fmax=8000, sr=sample_rate, duration=2.0)

    cache = MelFilterBankCache()
    bank = cache.get(fft_size, sample_rate, num_bands, 20.0, sample_rate / 2)
    mel = mel_spectrogram(sweep, bank, hop_size, smoothing_time_constant=0.0, floor_at_zero=False)

    print(f"Filterbank: {bank.num_bands} bands, {bank.n_bins} FFT bins")
    print(f"Mel spectrogram shape: {tuple(mel.shape)}")
    peak_bands = torch.argmax(mel, dim=0)
    print(
        f"Peak band at start / middle / end: "
        f"{bank.note_names[peak_bands[0].item()]} / "
        f"{bank.note_names[peak_bands[peak_bands.numel() // 2].item()]} / "
        f"{bank.note_names[peak_bands[-1].item()]}"
    )

    if not plots:
        return

    plot_filters(bank, band_idx_to_show=list(range(0, num_bands, max(num_bands // 8, 1))), legend=False)

    plt = _import_matplotlib()
    plt.figure(figsize=(9, 4))
    plt.imshow(mel.numpy(), origin="lower", aspect="auto", cmap="magma")
    plt.xlabel("Frame")
    plt.ylabel("Mel band")
    plt.title("Mel spectrogram of a 110 Hz – 8 kHz sweep")
    plt.colorbar(label="log10 magnitude")
    plt.tight_layout()
    plt.savefig("mel_spectrogram.png", dpi=150, bbox_inches="tight")
    plt.show()
    print("Saved mel spectrogram as 'mel_spectrogram.png'")


def main():
    """Main demo function."""
    parser = argparse.ArgumentParser(description="Spectral Resynth Demo")
    parser.add_argument(
        "--demo",
        choices=["all", "basic", "filter", "epicycles", "mel"],
        default="all",
        help="Which demo to run",
    )
    parser.add_argument("--no-plots", action="store_true", help="Skip plot generation")
    parser.add_argument("--preset", choices=sorted(PRESETS), default="square-shape", help="Preset shape or signal")
    parser.add_argument("--signal", choices=sorted(PRESETS), default="square", help="Preset waveform for the filter demo")
    parser.add_argument("--num-terms", type=int, default=50, help="Series terms for the epicycle demo")
    parser.add_argument("--low-pass", type=float, default=0.1, help="Low-pass cutoff fraction")
    parser.add_argument("--high-pass", type=float, default=0.0, help="High-pass cutoff fraction")
    parser.add_argument("--num-bands", type=int, default=64, help="Mel bands")

    args = parser.parse_args()
    plots = not args.no_plots

    print("Spectral Resynth Demo")
    print("=" * 50)

    try:
        if args.demo in ["all", "basic"]:
            demo_basic_usage()

        if args.demo in ["all", "filter"]:
            demo_filtering(args.signal, args.low_pass, args.high_pass, plots)

        if args.demo in ["all", "epicycles"]:
            demo_epicycles(args.preset, args.num_terms, plots)

        if args.demo in ["all", "mel"]:
            demo_mel_spectrogram(args.num_bands, plots)

        print("\n" + "=" * 50)
        print("Demo completed successfully!")

    except Exception as e:
        print(f"Error during demo: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
