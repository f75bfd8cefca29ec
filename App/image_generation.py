"""Base-image generation seam.

AIDEV-NOTE: Text-to-image services are external collaborators. The
pipeline only sees ``generate_base_image(prompt, provider, registry)``;
concrete network clients are registered by the caller on a ProviderRegistry
it owns and are never imported by the pipeline itself.
"""

import logging
from typing import Protocol

from errors import ImageGenerationError, InvalidInputError, UnknownProviderError

logger = logging.getLogger(__name__)


class ImageProvider(Protocol):
    """Anything that turns a prompt into encoded image bytes (PNG, JPEG...)."""

    def generate(self, prompt: str) -> bytes: ...


class ProviderRegistry:
    """Name -> provider lookup, case-insensitive."""

    def __init__(self) -> None:
        self._by_name: "dict[str, ImageProvider]" = {}

    def register(self, name: str, provider: ImageProvider) -> None:
        key = name.strip().lower()
        if not key:
            raise InvalidInputError("provider", "name must not be empty")
        self._by_name[key] = provider

    def names(self) -> "list[str]":
        return sorted(self._by_name.keys())

    def get(self, name: str) -> ImageProvider:
        key = name.strip().lower()
        if key not in self._by_name:
            raise UnknownProviderError(
                f"Unknown provider '{name}'. Available: "
                f"{', '.join(self.names()) or '(none)'}"
            )
        return self._by_name[key]


def generate_base_image(
    prompt: str, provider: str, registry: ProviderRegistry
) -> bytes:
    """Ask a registered provider for a base image.

    Args:
        prompt: Text description of the image
        provider: Registered provider name
        registry: Registry to look the provider up in

    Returns:
        Encoded image bytes as returned by the provider

    Raises:
        InvalidInputError: If the prompt is empty
        UnknownProviderError: If no provider has that name
        ImageGenerationError: If the provider fails or returns no data
    """
    if not prompt or not prompt.strip():
        raise InvalidInputError("prompt", "must not be empty")

    source = registry.get(provider)
    logger.info("Generating base image with provider '%s'", provider)

    try:
        data = source.generate(prompt.strip())
    except ImageGenerationError:
        raise
    except Exception as e:
        raise ImageGenerationError(f"Provider '{provider}' failed: {e}") from e

    if not data:
        raise ImageGenerationError(f"Provider '{provider}' returned no image data")
    return bytes(data)
