#!/usr/bin/env python3
"""
HLS Variant Generator
Generates segment-duration variants for uploaded videos on startup, then
optionally serves them over HTTP.
"""

import logging
import sys

from variantgen.config_manager import ConfigManager, ConfigurationError
from variantgen.errors import PipelineError
from variantgen.ffmpeg_runner import FFmpegRunner
from variantgen.pipeline import VariantPipeline
from variantgen.server import create_app
from variantgen.stats_tracker import StatsTracker
from variantgen.stop_flag import StopFlag


def main(argv=None):
    """Main entry point for the HLS variant generator."""
    argv = sys.argv[1:] if argv is None else argv

    logging.basicConfig(
        level=logging.INFO,
        format='[%(asctime)s] [%(levelname)s] %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    )

    logger = logging.getLogger(__name__)
    logger.info("=" * 60)
    logger.info("HLS Variant Generator - Starting")
    logger.info("=" * 60)

    try:
        config = ConfigManager(argv[0] if argv else "config.json")
    except ConfigurationError as e:
        logger.error(f"Fatal configuration error: {e}")
        return 1

    logger.info(f"  - Uploads directory: {config.uploads_directory}")
    logger.info(f"  - FFmpeg: {config.ffmpeg_path} (timeout {config.engine_timeout}s)")
    logger.info(f"  - Workers: {config.max_workers}")
    logger.info(f"  - Fail fast: {'enabled' if config.fail_fast else 'disabled'}")

    stats = StatsTracker()
    stats.start_timer()
    stop_flag = StopFlag.get_instance()
    stop_flag.register_signal_handlers()

    pipeline = VariantPipeline(
        FFmpegRunner(config.ffmpeg_path, timeout=config.engine_timeout),
        max_workers=config.max_workers,
        fail_fast=config.fail_fast,
        stats=stats,
        stop_flag=stop_flag
    )

    try:
        report = pipeline.run(config.uploads_directory)
    except PipelineError as e:
        logger.error(f"Fatal error processing videos: {e}")
        return 1
    finally:
        stop_flag.restore_signal_handlers()

    stats.print_summary()

    if stop_flag.is_stop_requested():
        logger.info("Stopped before all variants were generated")
        return 1

    if config.abort_on_failure:
        try:
            report.raise_for_failures()
        except PipelineError as e:
            logger.error(f"Startup aborted: {e}")
            return 1

    logger.info("=" * 60)
    logger.info("HLS Variant Generator - Completed")
    logger.info("=" * 60)

    if config.server_enabled:
        app = create_app(config.uploads_directory)
        logger.info(f"Server is running on http://{config.server_host}:{config.server_port}")
        app.run(host=config.server_host, port=config.server_port)

    return 0


if __name__ == "__main__":
    sys.exit(main())
