"""Statistics tracking for pipeline runs."""

import logging
import threading
import time
from typing import Optional

from variantgen.data_models import StatsSummary


class StatsTracker:
    """Tracks variant build statistics and generates summary reports."""

    def __init__(self):
        """Initialize StatsTracker with zero counters."""
        self._lock = threading.Lock()
        self._total_output_bytes = 0
        self._built_variants = 0
        self._skipped_variants = 0
        self._failed_variants = 0
        self._cancelled_variants = 0
        self._assets = 0
        self._start_time: Optional[float] = None
        self._total_build_time = 0.0  # Total time spent on successful builds
        logging.info("StatsTracker initialized")

    def start_timer(self):
        """Start the overall timer."""
        self._start_time = time.time()

    def add_assets(self, count: int) -> None:
        """Record the number of source videos found."""
        self._assets += count

    def record_built(self, elapsed: float, output_bytes: int) -> None:
        """
        Record a successfully built variant.

        Args:
            elapsed: Build time in seconds
            output_bytes: Size of the variant's output directory
        """
        with self._lock:
            self._built_variants += 1
            self._total_build_time += elapsed
            self._total_output_bytes += output_bytes
        logging.debug(f"Recorded built variant (total: {self._built_variants})")

    def record_skipped(self) -> None:
        """Record a variant that was already complete."""
        with self._lock:
            self._skipped_variants += 1

    def record_failure(self) -> None:
        """Record a failed variant."""
        with self._lock:
            self._failed_variants += 1
        logging.debug(f"Recorded failed variant (total: {self._failed_variants})")

    def record_cancelled(self) -> None:
        """Record a variant that was not attempted."""
        with self._lock:
            self._cancelled_variants += 1

    def get_summary(self) -> StatsSummary:
        """
        Return StatsSummary with GB conversions.

        Returns:
            StatsSummary dataclass with output size in gigabytes
        """
        bytes_per_gb = 1024 * 1024 * 1024
        return StatsSummary(
            total_output_gb=self._total_output_bytes / bytes_per_gb,
            built_variants=self._built_variants,
            skipped_variants=self._skipped_variants,
            failed_variants=self._failed_variants,
            cancelled_variants=self._cancelled_variants,
            assets=self._assets
        )

    def print_summary(self) -> None:
        """Display formatted statistics report."""
        summary = self.get_summary()

        total_runtime = 0.0
        if self._start_time is not None:
            total_runtime = time.time() - self._start_time

        avg_build_time = 0.0
        if self._built_variants > 0:
            avg_build_time = self._total_build_time / self._built_variants

        print("\n" + "=" * 60)
        print("VARIANT GENERATION SUMMARY")
        print("=" * 60)

        if total_runtime > 0:
            print(f"Total Runtime:            {self._format_time(total_runtime)}")
            if self._built_variants > 0:
                print(f"Average Time per Variant: {self._format_time(avg_build_time)}")

        print(f"Videos Found:             {summary.assets}")
        print(f"Output Written:           {summary.total_output_gb:.2f} GB")
        print(f"Variants Built:           {summary.built_variants}")
        print(f"Variants Skipped:         {summary.skipped_variants}")
        print(f"Variants Failed:          {summary.failed_variants}")
        if summary.cancelled_variants > 0:
            print(f"Variants Not Attempted:   {summary.cancelled_variants}")
        print("=" * 60 + "\n")

        logging.info(
            f"Statistics: {summary.assets} videos, "
            f"{summary.built_variants} built, "
            f"{summary.skipped_variants} skipped, "
            f"{summary.failed_variants} failed, "
            f"{summary.cancelled_variants} not attempted, "
            f"runtime: {self._format_time(total_runtime)}"
        )

    def _format_time(self, seconds: float) -> str:
        """
        Format seconds into human-readable time string.

        Args:
            seconds: Time in seconds

        Returns:
            Formatted time string (e.g., "1h 23m 45s" or "5m 30s" or "45s")
        """
        if seconds < 60:
            return f"{seconds:.0f}s"
        elif seconds < 3600:
            minutes = int(seconds // 60)
            secs = int(seconds % 60)
            return f"{minutes}m {secs}s"
        else:
            hours = int(seconds // 3600)
            minutes = int((seconds % 3600) // 60)
            secs = int(seconds % 60)
            return f"{hours}h {minutes}m {secs}s"
