#!/usr/bin/env python3
"""Performance benchmark script for Spectral Resynth.

This script measures the FFT-backed DFT against a dense matrix DFT, and the cost
of reusing a cached mel filterbank versus rebuilding it every frame.
"""

import argparse
import json
import statistics
import time
from datetime import datetime
from typing import Dict

import numpy as np
import torch
from tqdm import tqdm

from spectral_resynth import MelFilterBankCache, build_mel_filter_bank
from spectral_resynth.dft import get_transform


def _summary(prefix: str, times) -> Dict[str, float]:
    return {
        f"{prefix}_mean": statistics.mean(times),
        f"{prefix}_std": statistics.stdev(times) if len(times) > 1 else 0,
        f"{prefix}_median": statistics.median(times),
    }


def _matrix_dft(frame_size: int):
    """Dense [N, N] cos/sin tables for the direct-sum reference."""
    n = np.arange(frame_size, dtype=np.int64)
    angles = 2.0 * np.pi * (np.outer(n, n) % frame_size) / frame_size
    return (
        torch.tensor(np.cos(angles), dtype=torch.float64),
        torch.tensor(np.sin(angles), dtype=torch.float64),
    )


def benchmark_dft(
    frame_size: int, iterations: int = 200, warmup_iterations: int = 50
) -> Dict[str, float]:
    """Benchmark the FFT-backed transform against a dense matrix DFT (both 1/N)."""
    print(f"\nBenchmarking DFT (frame_size={frame_size})...")

    dft = get_transform(frame_size)
    cos_table, sin_table = _matrix_dft(frame_size)

    matrix_times = []
    fft_times = []

    print("  Warming up...")
    for _ in range(warmup_iterations):
        signal = torch.randn(frame_size, dtype=torch.float64)
        _ = torch.matmul(signal, cos_table) / frame_size
        _ = dft.transform(signal)

    print(f"  Running {iterations} iterations...")
    with torch.no_grad():
        for i in tqdm(range(iterations), desc="  Progress"):
            signal = torch.randn(frame_size, dtype=torch.float64)

            start_time = time.perf_counter()
            ref_real = torch.matmul(signal, cos_table) / frame_size
            ref_imag = -torch.matmul(signal, sin_table) / frame_size
            matrix_times.append((time.perf_counter() - start_time) * 1000)

            start_time = time.perf_counter()
            real, imag, _, _ = dft.transform(signal)
            fft_times.append((time.perf_counter() - start_time) * 1000)

            # Verify accuracy (only on first few iterations to avoid overhead)
            if i < 5:
                assert torch.allclose(ref_real, real, atol=1e-9)
                assert torch.allclose(ref_imag, imag, atol=1e-9)

    return {**_summary("matrix", matrix_times), **_summary("fft", fft_times)}


def benchmark_mel_cache(
    fft_size: int, iterations: int = 200, warmup_iterations: int = 50, num_bands: int = 64
) -> Dict[str, float]:
    """Benchmark one mel frame with a cached bank vs a bank rebuilt per frame."""
    print(f"\nBenchmarking mel filterbank (fft_size={fft_size})...")

    params = (fft_size, 44_100, num_bands, 20.0, 22_050.0)
    cache = MelFilterBankCache()

    rebuild_times = []
    cached_times = []

    print("  Warming up...")
    for _ in range(warmup_iterations):
        spectrum = torch.rand(fft_size // 2, dtype=torch.float64) * -100.0
        cache.get(*params)(spectrum)

    print(f"  Running {iterations} iterations...")
    with torch.no_grad():
        for _ in tqdm(range(iterations), desc="  Progress"):
            spectrum = torch.rand(fft_size // 2, dtype=torch.float64) * -100.0

            start_time = time.perf_counter()
            build_mel_filter_bank(*params)(spectrum)
            rebuild_times.append((time.perf_counter() - start_time) * 1000)

            start_time = time.perf_counter()
            cache.get(*params)(spectrum)
            cached_times.append((time.perf_counter() - start_time) * 1000)

    assert cache.builds == 1, "cache rebuilt with unchanged parameters"

    return {**_summary("rebuild", rebuild_times), **_summary("cached", cached_times)}


def print_performance_table(results: Dict[str, Dict[str, float]]) -> None:
    """Print performance results in a clean table format."""
    print("\n" + "=" * 80)
    print("PERFORMANCE BENCHMARK RESULTS")
    print("=" * 80)

    dft_keys = [k for k in results if k.startswith("dft_")]
    if dft_keys:
        print("\nDFT Performance:")
        print("| Configuration | Time (ms) | Relative |")
        print("|---------------|-----------|----------|")
        for key in dft_keys:
            size = key.split("_")[-1]
            data = results[key]
            ratio = data["matrix_mean"] / data["fft_mean"]
            print(f"| FFT-backed DFT (N={size}) | ~{data['fft_mean']:.3f} | 1.0x |")
            print(f"| Matrix DFT (N={size}) | ~{data['matrix_mean']:.3f} | {ratio:.2f}x |")

    mel_keys = [k for k in results if k.startswith("mel_")]
    if mel_keys:
        print("\nMel Filterbank Performance:")
        print("| Configuration | Time (ms) | Relative |")
        print("|---------------|-----------|----------|")
        for key in mel_keys:
            size = key.split("_")[-1]
            data = results[key]
            ratio = data["rebuild_mean"] / data["cached_mean"]
            print(f"| Cached bank (fft_size={size}) | ~{data['cached_mean']:.3f} | 1.0x |")
            print(f"| Rebuilt per frame (fft_size={size}) | ~{data['rebuild_mean']:.3f} | {ratio:.1f}x |")

    print("\n" + "=" * 50)
    print("SYSTEM INFORMATION")
    print("=" * 50)
    print(f"PyTorch version: {torch.__version__}")
    print(f"Number of threads: {torch.get_num_threads()}")


def main():
    """Main function for running performance benchmarks."""
    parser = argparse.ArgumentParser(description="Spectral Resynth Performance Benchmark")
    parser.add_argument(
        "--frame-sizes",
        nargs="+",
        type=int,
        default=[256, 1024, 2048],
        help="Frame / FFT sizes to benchmark (default: 256 1024 2048)",
    )
    parser.add_argument(
        "--iterations",
        type=int,
        default=200,
        help="Number of iterations for timing (default: 200)",
    )
    parser.add_argument(
        "--warmup",
        type=int,
        default=50,
        help="Number of warmup iterations (default: 50)",
    )
    parser.add_argument(
        "--test-type",
        choices=["dft", "mel", "all"],
        default="all",
        help="Type of test to run (default: all)",
    )
    parser.add_argument(
        "--quick",
        action="store_true",
        help="Quick test with fewer iterations (50 iterations, 10 warmup)",
    )
    parser.add_argument(
        "--save",
        action="store_true",
        help="Write results to benchmark_results_<timestamp>.json",
    )

    args = parser.parse_args()

    if args.quick:
        args.iterations = 50
        args.warmup = 10

    print("Spectral Resynth Performance Benchmark")
    print("=" * 50)
    print(f"Testing frame sizes: {args.frame_sizes}")
    print(f"Iterations: {args.iterations}, Warmup: {args.warmup}")
    print(f"Test type: {args.test_type}")

    results = {}

    for frame_size in args.frame_sizes:
        if args.test_type in ["dft", "all"]:
            results[f"dft_{frame_size}"] = benchmark_dft(
                frame_size, args.iterations, args.warmup
            )

        if args.test_type in ["mel", "all"]:
            results[f"mel_{frame_size}"] = benchmark_mel_cache(
                frame_size, args.iterations, args.warmup
            )

    print_performance_table(results)

    if not args.save:
        return

    timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
    filename = f"benchmark_results_{timestamp}.json"

    results_with_metadata = {
        "timestamp": timestamp,
        "args": vars(args),
        "system": {
            "pytorch_version": torch.__version__,
            "num_threads": torch.get_num_threads(),
        },
        "results": results,
    }

    with open(filename, "w") as f:
        json.dump(results_with_metadata, f, indent=2)

    print(f"\nDetailed results saved to: {filename}")


if __name__ == "__main__":
    main()
