"""Detects variants that were already generated on a previous run."""

import logging
from pathlib import Path

from variantgen.catalog import VariantSpec
from variantgen.data_models import VariantOutput, VideoAsset


class CompletionProber:
    """Decides whether a variant needs building by looking for its playlist."""

    def __init__(self, uploads_dir: Path):
        self.uploads_dir = uploads_dir

    def output_for(self, asset: VideoAsset, variant: VariantSpec) -> VariantOutput:
        """Compute where a variant of an asset lives on disk."""
        return VariantOutput.for_variant(self.uploads_dir, asset, variant)

    def exists(self, asset: VideoAsset, variant: VariantSpec) -> bool:
        """
        Check whether a variant's canonical playlist is present.

        Only the playlist counts: segment files or an existing output
        directory without it mean the variant is incomplete.

        Args:
            asset: Source video
            variant: Variant to check

        Returns:
            True if the playlist exists as a regular file right now
        """
        playlist = self.output_for(asset, variant).playlist_path
        complete = playlist.is_file()
        logging.debug(f"Probe {playlist}: {'complete' if complete else 'missing'}")
        return complete
