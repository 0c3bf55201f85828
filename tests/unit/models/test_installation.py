"""Unit tests for installation models."""

import pytest
from phpinictl.models.installation import EnvironmentTemplate, Installation


def _installation(**overrides: object) -> Installation:
    values: dict[str, object] = {
        "version": "8.3.4",
        "base_path": "C:/laragon/bin/php/php-8.3.4",
        "ini_path": "C:/laragon/bin/php/php-8.3.4/php.ini",
        "extension_dir": "C:/laragon/bin/php/php-8.3.4/ext",
        "executable_path": "C:/laragon/bin/php/php-8.3.4/php.exe",
        "environment_label": "Laragon",
    }
    values.update(overrides)
    return Installation(**values)  # type: ignore[arg-type]


class TestEnvironmentTemplate:
    """Tests for EnvironmentTemplate validation."""

    def test_empty_name_rejected(self) -> None:
        """A template needs a name."""
        with pytest.raises(ValueError, match="name cannot be empty"):
            EnvironmentTemplate(name="", base_paths=(), ini_pattern=(), ext_pattern=())

    def test_deep_scan_depth_must_be_positive(self) -> None:
        """deep_scan_depth below 1 is rejected."""
        with pytest.raises(ValueError, match="deep_scan_depth"):
            EnvironmentTemplate(
                name="Custom",
                base_paths=(),
                ini_pattern=("php.ini",),
                ext_pattern=("ext",),
                deep_scan_depth=0,
            )

    def test_defaults(self) -> None:
        """By default the binary lives in the base directory."""
        template = EnvironmentTemplate(
            name="Custom", base_paths=("/opt/php",), ini_pattern=("php.ini",), ext_pattern=("ext",)
        )

        assert template.exe_patterns == ((),)
        assert template.version_pattern is None
        assert template.priority == 50


class TestInstallation:
    """Tests for Installation."""

    @pytest.mark.parametrize(
        ("version", "expected"),
        [
            ("8.3.4", (8, 3, 4)),
            ("8.4.0RC1", (8, 4, 0)),
            ("7.4", (7, 4)),
            ("unknown", ()),
        ],
    )
    def test_version_tuple(self, version: str, expected: tuple[int, ...]) -> None:
        """Numeric components are extracted; suffixes are ignored."""
        assert _installation(version=version).version_tuple == expected

    def test_dedup_key(self) -> None:
        """Dedup identity is base path plus executable."""
        inst = _installation()

        assert inst.dedup_key == (inst.base_path, inst.executable_path)

    def test_activated_returns_copy(self) -> None:
        """activated() leaves the original untouched."""
        inst = _installation()

        active = inst.activated()

        assert active.is_active
        assert not inst.is_active

    @pytest.mark.parametrize(("ts", "label"), [(True, "TS"), (False, "NTS"), (None, "")])
    def test_thread_safety_label(self, ts: bool | None, label: str) -> None:
        """Thread safety renders as TS, NTS or nothing."""
        assert _installation(thread_safety=ts).thread_safety_label == label

    def test_to_dict(self) -> None:
        """to_dict exposes the environment label and thread safety."""
        data = _installation(thread_safety=False, is_active=True).to_dict()

        assert data["environment"] == "Laragon"
        assert data["thread_safety"] == "NTS"
        assert data["is_active"] is True
        assert data["architecture"] is None
