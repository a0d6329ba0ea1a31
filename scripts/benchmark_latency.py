#!/usr/bin/env python3
"""
Latency Benchmark Utility for Yttrium.

Measures depth rendering latency and full predict/update cycle latency of
the robust Gaussian filter on a synthetic box scene.

Usage:
    python scripts/benchmark_latency.py --iterations 50 --workers 4
"""

import argparse
import statistics
import sys
import time
from typing import List

import numpy as np

from yttrium.config.schema import TrackerConfig
from yttrium.estimation.builder import build
from yttrium.perception.calib import CameraData, CameraIntrinsics
from yttrium.perception.objects import ObjectModel, TriangleMesh
from yttrium.sim.synthetic import SyntheticScene

TRUE_POSE = np.array([[0.0, 0.0, 1.0, 0.52, 0.35, 0.0]])


def benchmark_render(iterations: int, scene: SyntheticScene) -> List[float]:
    """
    Benchmark depth rendering latency.

    Args:
        iterations: Number of iterations.
        scene: Scene whose renderer is timed.

    Returns:
        List of latency measurements in milliseconds.
    """
    latencies = []

    for _ in range(3):  # Warmup
        scene.render(TRUE_POSE)

    for _ in range(iterations):
        start = time.perf_counter()
        scene.render(TRUE_POSE)
        end = time.perf_counter()
        latencies.append((end - start) * 1000)

    return latencies


def print_statistics(name: str, latencies: List[float]) -> None:
    """Print latency statistics."""
    if len(latencies) < 2:
        print(f"{name}: Not enough data")
        return

    ordered = sorted(latencies)
    print(f"\n{name}")
    print("-" * 50)
    print(f"  Samples:     {len(latencies)}")
    print(f"  Mean:        {statistics.mean(latencies):.3f} ms")
    print(f"  Median:      {statistics.median(latencies):.3f} ms")
    print(f"  Std Dev:     {statistics.stdev(latencies):.3f} ms")
    print(f"  Min:         {ordered[0]:.3f} ms")
    print(f"  Max:         {ordered[-1]:.3f} ms")
    print(f"  P95:         {ordered[int(len(ordered) * 0.95)]:.3f} ms")
    print(f"  Throughput:  {1000 / statistics.mean(latencies):.1f} Hz")


def main() -> int:
    """Main entry point."""
    parser = argparse.ArgumentParser(
        description="Latency benchmark utility for the Yttrium tracker.",
    )
    parser.add_argument(
        "--iterations", "-n", type=int, default=50, help="Number of cycles"
    )
    parser.add_argument("--width", type=int, default=640, help="Sensor width")
    parser.add_argument("--height", type=int, default=480, help="Sensor height")
    parser.add_argument(
        "--downsampling", type=int, default=8, help="Image downsampling factor"
    )
    parser.add_argument(
        "--workers", type=int, default=1, help="Likelihood evaluation threads"
    )
    parser.add_argument(
        "--backend", choices=["cpu", "gpu"], default="cpu", help="Render backend"
    )
    args = parser.parse_args()

    camera = CameraData(
        intrinsics=CameraIntrinsics.default(args.width, args.height),
        downsampling_factor=args.downsampling,
    )
    model = ObjectModel(meshes=(TriangleMesh.box((0.2, 0.15, 0.1)),))
    scene = SyntheticScene(model, [camera], background_depth=2.5)

    height, width = camera.resolution
    print("=" * 60)
    print("YTTRIUM LATENCY BENCHMARK")
    print("=" * 60)
    print(f"Iterations:  {args.iterations}")
    print(f"Resolution:  {width}x{height} (downsampling {args.downsampling})")
    print(f"Backend:     {args.backend}, workers: {args.workers}")

    print_statistics("Depth Rendering", benchmark_render(args.iterations, scene))

    tracker = build(
        TrackerConfig(
            backend=args.backend,
            workers=args.workers,
            observation={"bg_depth": 2.5, "bg_noise_std": 0.05, "fg_noise_std": 0.01},
        ),
        camera,
        model,
    )
    tracker.initialize(TRUE_POSE)
    observation = scene.render(TRUE_POSE)

    print(f"\nRunning filter benchmark ({args.iterations} cycles)...")
    for _ in range(args.iterations):
        tracker.step(observation)

    cycle_latencies = [d.latency_ms for d in tracker.telemetry.history]
    print_statistics(
        f"Filter Cycle ({2 * tracker.layout.n_state + 1} points)", cycle_latencies
    )

    print("\n" + "=" * 60)
    print("BENCHMARK COMPLETE")
    print("=" * 60)

    return 0


if __name__ == "__main__":
    sys.exit(main())
