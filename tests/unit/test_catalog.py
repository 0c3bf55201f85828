"""Unit tests for the bundled extension catalog."""

import pytest
from phpinictl.catalog import Catalog, FrameworkPreset, load_catalog


class TestLoadCatalog:
    """Tests for load_catalog."""

    def test_bundled_catalog_loads(self) -> None:
        """The bundled data validates and contains the standard presets."""
        catalog = load_catalog()

        assert {"laravel", "symfony", "wordpress", "minimal"} <= set(catalog.presets)
        assert "curl" in catalog.extensions

    def test_cached(self) -> None:
        """Repeated loads return the same object."""
        assert load_catalog() is load_catalog()

    def test_preset_extensions_are_described(self) -> None:
        """Every preset extension has catalog metadata."""
        catalog = load_catalog()

        for preset in catalog.presets.values():
            for name in preset.extensions:
                assert catalog.describe(name) is not None, name

    def test_zend_extensions_flagged(self) -> None:
        """opcache loads as a Zend extension, curl does not."""
        catalog = load_catalog()

        assert catalog.extensions["opcache"].zend is True
        assert catalog.extensions["curl"].zend is False


class TestCatalogLookups:
    """Tests for Catalog lookups."""

    @pytest.fixture
    def catalog(self) -> Catalog:
        """A one-preset catalog."""
        return Catalog(
            presets={
                "tiny": FrameworkPreset(
                    description="Tiny", extensions=("curl",), settings={"memory_limit": "64M"}
                )
            }
        )

    def test_describe_is_case_insensitive(self) -> None:
        """Extension lookups ignore case."""
        assert load_catalog().describe("CURL") == load_catalog().describe("curl")

    def test_describe_unknown(self) -> None:
        """Unknown extensions have no metadata."""
        assert load_catalog().describe("no_such_ext") is None

    def test_unknown_preset_lists_available(self, catalog: Catalog) -> None:
        """The KeyError message names the presets that exist."""
        with pytest.raises(KeyError, match=r"available: tiny"):
            catalog.preset("drupal")

    def test_preset_case_insensitive(self, catalog: Catalog) -> None:
        """Preset names ignore case."""
        assert catalog.preset("TINY").description == "Tiny"

    def test_preset_settings_read_only(self, catalog: Catalog) -> None:
        """preset_settings cannot be used to mutate the preset."""
        settings = catalog.preset_settings("tiny")

        assert settings["memory_limit"] == "64M"
        with pytest.raises(TypeError):
            settings["memory_limit"] = "1G"  # type: ignore[index]
