"""Data models and dataclasses for the variant generator."""

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import List, Optional

from variantgen.catalog import VariantSpec
from variantgen.errors import PipelineError


PLAYLIST_NAME = "playlist.m3u8"


@dataclass(frozen=True)
class VideoAsset:
    """A source video discovered in the uploads directory."""
    path: Path
    base_name: str  # file name without extension

    @classmethod
    def from_path(cls, path: Path) -> "VideoAsset":
        return cls(path=path, base_name=path.stem)

    @property
    def name(self) -> str:
        return self.path.name


@dataclass(frozen=True)
class VariantOutput:
    """Location of one variant's output on disk."""
    output_dir: Path
    playlist_path: Path

    @classmethod
    def for_variant(cls, uploads_root: Path, asset: VideoAsset, variant: VariantSpec) -> "VariantOutput":
        output_dir = uploads_root / f"{asset.base_name}_{variant.suffix}"
        return cls(output_dir=output_dir, playlist_path=output_dir / PLAYLIST_NAME)


class VariantStatus(str, Enum):
    """Outcome of processing one variant of one asset."""
    BUILT = "built"
    SKIPPED = "skipped"
    FAILED = "failed"
    CANCELLED = "cancelled"


@dataclass
class VariantResult:
    """Result of processing a single (asset, variant) pair."""
    asset: VideoAsset
    variant: VariantSpec
    status: VariantStatus
    playlist_path: Optional[Path] = None
    error: Optional[PipelineError] = None
    elapsed: float = 0.0

    @property
    def label(self) -> str:
        return f"{self.asset.base_name}_{self.variant.suffix}"


@dataclass
class PipelineReport:
    """Per-variant results of one pipeline run, in processing order."""
    results: List[VariantResult] = field(default_factory=list)

    def _with_status(self, status: VariantStatus) -> List[VariantResult]:
        return [r for r in self.results if r.status == status]

    @property
    def built(self) -> List[VariantResult]:
        return self._with_status(VariantStatus.BUILT)

    @property
    def skipped(self) -> List[VariantResult]:
        return self._with_status(VariantStatus.SKIPPED)

    @property
    def failures(self) -> List[VariantResult]:
        return self._with_status(VariantStatus.FAILED)

    @property
    def cancelled(self) -> List[VariantResult]:
        return self._with_status(VariantStatus.CANCELLED)

    @property
    def ok(self) -> bool:
        """True when no variant failed or was cancelled."""
        return not self.failures and not self.cancelled

    def raise_for_failures(self) -> None:
        """
        Raise the first recorded failure, if any.

        Raises:
            PipelineError: If at least one variant failed
        """
        failures = self.failures
        if not failures:
            return
        first = failures[0]
        if len(failures) == 1 and first.error is not None:
            raise first.error
        names = ", ".join(r.label for r in failures)
        raise PipelineError(f"{len(failures)} variant(s) failed: {names}") from first.error


@dataclass
class ValidationResult:
    """Result of validating a variant playlist before it is published."""
    valid: bool
    playlist_valid: bool
    segments_valid: bool
    error_message: Optional[str] = None


@dataclass
class StatsSummary:
    """Summary statistics for a pipeline run."""
    total_output_gb: float
    built_variants: int
    skipped_variants: int
    failed_variants: int
    cancelled_variants: int
    assets: int
