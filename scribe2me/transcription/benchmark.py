"""Micro benchmarks run by the Benchmark trigger.

Both report plain text suitable for the event log: a memory copy
bandwidth test and a float32 matrix multiplication sweep. numpy does not
take a thread count, so the requested one is reported next to what the
measurement actually used.
"""

import time
import logging
from typing import Sequence

import numpy as np

logger = logging.getLogger(__name__)

MEMCPY_BYTES = 16 * 1024 * 1024
MEMCPY_ROUNDS = 5
MATMUL_SIZES = (64, 128, 256, 512)


def bench_memcpy(n_threads: int, size_bytes: int = MEMCPY_BYTES, rounds: int = MEMCPY_ROUNDS) -> str:
    """Measure copy bandwidth between two buffers of ``size_bytes``."""
    src = np.ones(size_bytes, dtype=np.uint8)
    dst = np.empty_like(src)

    # warm-up so page faults are not timed
    np.copyto(dst, src)

    lines = []
    total = 0.0
    for _ in range(rounds):
        start = time.perf_counter()
        np.copyto(dst, src)
        elapsed = max(time.perf_counter() - start, 1e-9)
        gbps = size_bytes / elapsed / 1e9
        total += gbps
        lines.append(f"memcpy: {gbps:7.2f} GB/s ({size_bytes // (1024 * 1024)} MB)")

    lines.append(f"average: {total / rounds:7.2f} GB/s (1 thread, {n_threads} requested)")
    logger.debug(f"Memory benchmark finished: {lines[-1]}")
    return "\n".join(lines) + "\n"


def bench_matmul(n_threads: int, sizes: Sequence[int] = MATMUL_SIZES, rounds: int = 3) -> str:
    """Measure float32 matrix multiplication throughput for square matrices."""
    rng = np.random.default_rng(0)
    lines = []
    for n in sizes:
        a = rng.standard_normal((n, n), dtype=np.float32)
        b = rng.standard_normal((n, n), dtype=np.float32)
        np.matmul(a, b)

        start = time.perf_counter()
        for _ in range(rounds):
            np.matmul(a, b)
        elapsed = max(time.perf_counter() - start, 1e-9)

        flops = 2.0 * n * n * n * rounds
        gflops = flops / elapsed / 1e9
        lines.append(f"{n:5d} x {n:5d}: F32 {gflops:8.1f} GFLOPS ({rounds} runs)")
    lines.append(f"threads: numpy BLAS pool ({n_threads} requested)")

    logger.debug(f"Matmul benchmark finished for sizes {list(sizes)}")
    return "\n".join(lines) + "\n"
