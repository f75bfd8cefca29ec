import pytest

from errors import ImageGenerationError, InvalidInputError, UnknownProviderError
from image_generation import ProviderRegistry, generate_base_image


class StaticProvider:
    def __init__(self, data=b"\x89PNG..."):
        self.data = data

    def generate(self, prompt):
        return self.data


class BrokenProvider:
    def generate(self, prompt):
        raise ConnectionError("service unavailable")


@pytest.fixture
def registry():
    registry = ProviderRegistry()
    registry.register("Static", StaticProvider())
    registry.register("broken", BrokenProvider())
    registry.register("empty", StaticProvider(b""))
    return registry


def test_lookup_is_case_insensitive(registry):
    assert registry.names() == ["broken", "empty", "static"]
    assert generate_base_image("a quilt", " STATIC ", registry) == b"\x89PNG..."


def test_empty_prompt(registry):
    with pytest.raises(InvalidInputError) as excinfo:
        generate_base_image("   ", "static", registry)
    assert excinfo.value.field == "prompt"


def test_unknown_provider(registry):
    with pytest.raises(UnknownProviderError) as excinfo:
        generate_base_image("a quilt", "nope", registry)
    assert "Available: broken, empty, static" in str(excinfo.value)
    assert isinstance(excinfo.value, KeyError)


def test_provider_failure_is_wrapped(registry):
    with pytest.raises(ImageGenerationError) as excinfo:
        generate_base_image("a quilt", "broken", registry)
    assert isinstance(excinfo.value.__cause__, ConnectionError)


def test_empty_result_is_an_error(registry):
    with pytest.raises(ImageGenerationError):
        generate_base_image("a quilt", "empty", registry)


def test_register_rejects_blank_name():
    with pytest.raises(InvalidInputError):
        ProviderRegistry().register("  ", StaticProvider())


def test_registries_are_independent(registry):
    other = ProviderRegistry()
    assert other.names() == []
    with pytest.raises(UnknownProviderError):
        generate_base_image("a quilt", "static", other)
