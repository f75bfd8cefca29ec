"""Exception types raised by the quilt pattern pipeline."""


class QuiltPatternError(Exception):
    """Base class for all pipeline errors."""


class InvalidInputError(QuiltPatternError, ValueError):
    """Input rejected before any processing begins.

    AIDEV-NOTE: Subclasses ValueError so callers that only know about the
    builtin still catch bad images and settings.
    """

    def __init__(self, field: str, message: str):
        self.field = field
        super().__init__(f"Invalid {field}: {message}")


class InvalidSettingsError(InvalidInputError):
    """A settings value is out of range or of the wrong type."""


class PipelineStageError(QuiltPatternError):
    """Unexpected failure inside one pipeline stage."""

    def __init__(self, stage: str, message: str):
        self.stage = stage
        super().__init__(f"Pipeline stage '{stage}' failed: {message}")


class ImageGenerationError(QuiltPatternError):
    """The external base-image provider failed or returned nothing."""


class UnknownProviderError(ImageGenerationError, KeyError):
    """No base-image provider is registered under the requested name."""

    def __str__(self) -> str:
        # KeyError would wrap the message in quotes
        return str(self.args[0]) if self.args else ""
