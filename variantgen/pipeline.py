"""Generates every missing variant for every video in the uploads directory."""

import logging
import threading
import time
from concurrent.futures import ThreadPoolExecutor
from contextlib import contextmanager
from pathlib import Path
from typing import Dict, Iterator, List, Optional, Sequence

from variantgen.catalog import VARIANT_CATALOG, VariantSpec
from variantgen.completion import CompletionProber
from variantgen.data_models import PipelineReport, VariantResult, VariantStatus, VideoAsset
from variantgen.errors import EncodeError, PipelineError
from variantgen.fast_start import FastStartSynthesizer
from variantgen.ffmpeg_runner import FFmpegRunner
from variantgen.file_processor import FileProcessor
from variantgen.hls_encoder import NormalSegmenter
from variantgen.stats_tracker import StatsTracker
from variantgen.stop_flag import StopFlag
from variantgen.validator import Validator


class VariantPipeline:
    """
    Walks videos x catalog, skipping complete variants and building the rest.

    With max_workers=1 (the default) variants are built strictly one after
    another, in discovery order and catalog order. With more workers the
    same jobs run on a bounded thread pool; probing and building one output
    directory is always done under that directory's claim lock.

    Failures are recorded per variant. With fail_fast=True the first failure
    stops any further builds and the remaining variants are reported as
    cancelled.
    """

    def __init__(
        self,
        runner: FFmpegRunner,
        catalog: Sequence[VariantSpec] = VARIANT_CATALOG,
        max_workers: int = 1,
        fail_fast: bool = False,
        stats: Optional[StatsTracker] = None,
        stop_flag: Optional[StopFlag] = None,
        validator: Optional[Validator] = None
    ):
        """
        Initialize VariantPipeline.

        Args:
            runner: FFmpeg runner shared by all builders
            catalog: Variants to generate for each video
            max_workers: Number of variants built concurrently
            fail_fast: Stop building after the first failure
            stats: Statistics tracker (default: new StatsTracker)
            stop_flag: Flag checked before each variant (default: new StopFlag)
            validator: Playlist validator used by the builders
        """
        if max_workers < 1:
            raise ValueError(f"max_workers must be at least 1, got {max_workers}")

        validator = validator or Validator()
        self.catalog = tuple(catalog)
        self.max_workers = max_workers
        self.fail_fast = fail_fast
        self.stats = stats or StatsTracker()
        self.stop_flag = stop_flag or StopFlag()
        self.segmenter = NormalSegmenter(runner, validator)
        self.synthesizer = FastStartSynthesizer(runner, validator)

        self._claims: Dict[Path, threading.Lock] = {}
        self._claims_lock = threading.Lock()
        self._abort = threading.Event()

    def run(self, uploads_root: Path) -> PipelineReport:
        """
        Generate all missing variants under an uploads directory.

        Args:
            uploads_root: Directory holding source videos; created if missing

        Returns:
            PipelineReport with one result per (video, variant) pair

        Raises:
            ScanError: If the uploads directory cannot be created or read
        """
        logging.info("=" * 60)
        logging.info(f"Checking uploads directory for videos: {uploads_root}")
        logging.info("=" * 60)

        self._abort.clear()
        report = PipelineReport()
        file_processor = FileProcessor(uploads_root)

        if file_processor.ensure_uploads_dir():
            logging.info("No videos found to process.")
            return report

        assets = file_processor.find_video_assets()
        if not assets:
            logging.info("No videos found in uploads directory.")
            return report

        self.stats.add_assets(len(assets))
        logging.info(f"Found {len(assets)} video(s) to process:")
        for idx, asset in enumerate(assets, 1):
            logging.info(f"  {idx}. {asset.name}")

        prober = CompletionProber(uploads_root)
        if self.max_workers == 1:
            report.results.extend(self._run_sequential(prober, assets))
        else:
            report.results.extend(self._run_concurrent(prober, assets))

        if report.ok:
            logging.info("All videos processed successfully")
        else:
            logging.error(
                f"Variant generation finished with {len(report.failures)} failure(s) "
                f"and {len(report.cancelled)} variant(s) not attempted"
            )
        return report

    def _run_sequential(self, prober: CompletionProber, assets: List[VideoAsset]) -> List[VariantResult]:
        results = []
        for asset in assets:
            logging.info("=" * 60)
            logging.info(f"Processing video: {asset.name}")
            logging.info("=" * 60)

            asset_results = [self._process(prober, asset, variant) for variant in self.catalog]
            results.extend(asset_results)

            if all(r.status in (VariantStatus.BUILT, VariantStatus.SKIPPED) for r in asset_results):
                logging.info(f"Successfully processed {asset.name}")
            else:
                logging.error(f"Failed to process {asset.name}")
        return results

    def _run_concurrent(self, prober: CompletionProber, assets: List[VideoAsset]) -> List[VariantResult]:
        logging.info(f"Building variants with {self.max_workers} workers")
        with ThreadPoolExecutor(max_workers=self.max_workers, thread_name_prefix="variant") as pool:
            futures = [
                pool.submit(self._process, prober, asset, variant)
                for asset in assets
                for variant in self.catalog
            ]
            return [future.result() for future in futures]

    @contextmanager
    def _claim(self, output_dir: Path) -> Iterator[None]:
        """Hold the lock owning one variant output directory."""
        with self._claims_lock:
            lock = self._claims.setdefault(output_dir, threading.Lock())
        with lock:
            yield

    def _process(self, prober: CompletionProber, asset: VideoAsset, variant: VariantSpec) -> VariantResult:
        """Probe one variant and build it if it is missing."""
        if self._abort.is_set() or self.stop_flag.is_stop_requested():
            self.stats.record_cancelled()
            return VariantResult(asset, variant, VariantStatus.CANCELLED)

        output = prober.output_for(asset, variant)
        with self._claim(output.output_dir):
            if prober.exists(asset, variant):
                logging.info(f"{output.output_dir.name} already exists, skipping...")
                self.stats.record_skipped()
                return VariantResult(asset, variant, VariantStatus.SKIPPED, playlist_path=output.playlist_path)

            start = time.time()
            try:
                playlist_path = self._build(asset, variant, output.output_dir)
            except PipelineError as e:
                return self._record_failure(asset, variant, e, time.time() - start)
            except Exception as e:
                logging.error(f"Unexpected error building {output.output_dir.name}: {e}", exc_info=True)
                error = PipelineError(f"Unexpected error: {e}")
                error.__cause__ = e
                return self._record_failure(asset, variant, error, time.time() - start)

            elapsed = time.time() - start
            output_bytes = FileProcessor(prober.uploads_dir).get_folder_size(output.output_dir)
            self.stats.record_built(elapsed, output_bytes)
            logging.info(f"Built {output.output_dir.name} in {elapsed:.1f}s")
            return VariantResult(
                asset, variant, VariantStatus.BUILT,
                playlist_path=playlist_path,
                elapsed=elapsed
            )

    def _build(self, asset: VideoAsset, variant: VariantSpec, output_dir: Path) -> Path:
        if variant.fast_start:
            return self.synthesizer.build(asset, variant.segment_duration, output_dir)
        return self.segmenter.build(asset, variant.segment_duration, output_dir)

    def _record_failure(
        self,
        asset: VideoAsset,
        variant: VariantSpec,
        error: PipelineError,
        elapsed: float
    ) -> VariantResult:
        label = f"{asset.base_name}_{variant.suffix}"
        logging.error(f"Failed to build {label}: {error}")
        if isinstance(error, EncodeError) and error.diagnostics:
            logging.error(f"FFmpeg stderr:\n{error.diagnostics}")

        self.stats.record_failure()
        if self.fail_fast:
            self._abort.set()
        return VariantResult(asset, variant, VariantStatus.FAILED, error=error, elapsed=elapsed)
