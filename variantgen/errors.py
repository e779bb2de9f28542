"""Exceptions raised by the variant generation pipeline."""

from typing import Optional


class PipelineError(Exception):
    """Base class for errors raised while generating variants."""
    pass


class ScanError(PipelineError):
    """The uploads directory could not be read."""
    pass


class EncodeError(PipelineError):
    """
    FFmpeg failed while building a variant.

    Attributes:
        step: Build step that failed ("segment", "lead_in", "remainder")
        diagnostics: FFmpeg stderr output, verbatim
    """

    def __init__(self, message: str, step: str, diagnostics: Optional[str] = None):
        super().__init__(message)
        self.step = step
        self.diagnostics = diagnostics or ""

    def __str__(self) -> str:
        return f"[{self.step}] {super().__str__()}"


class PlaylistSynthesisError(PipelineError):
    """A playlist could not be read, parsed, validated or written."""
    pass
