"""Unit tests for php.ini transformation."""

from pathlib import Path
from unittest.mock import MagicMock

import pytest
from phpinictl.backups.archive import BackupArchive
from phpinictl.discovery.probe import StartupProblems
from phpinictl.errors import BackupError, IniFileNotFoundError, TransformError
from phpinictl.ini.availability import ExtensionAvailability
from phpinictl.ini.transformer import (
    IniTransformer,
    format_setting,
    normalize_extension_dir,
)

EXPECTED_LARAVEL = """[PHP]
engine = On
memory_limit = 512M
max_execution_time = 999

; Dynamic Extensions
extension=curl
extension=mbstring
extension=openssl
;extension=opcache
max_input_vars = 5000

[Date]
;date.timezone =
"""


@pytest.fixture
def unavailable() -> MagicMock:
    """Availability strategy that finds nothing."""
    strategy = MagicMock(spec=ExtensionAvailability)
    strategy.is_available.return_value = False
    return strategy


@pytest.fixture
def transformer(unavailable: MagicMock, fake_probe: MagicMock) -> IniTransformer:
    """Transformer with no extension binaries and a silent probe."""
    return IniTransformer(availability=unavailable, probe=fake_probe)


SETTINGS = {"memory_limit": "512M", "max_execution_time": 999, "max_input_vars": 5000}


class TestHelpers:
    """Tests for formatting helpers."""

    def test_format_setting(self) -> None:
        """Booleans render as On/Off."""
        assert format_setting("display_errors", False) == "display_errors = Off"
        assert format_setting("max_input_vars", 5000) == "max_input_vars = 5000"

    @pytest.mark.parametrize(
        ("raw", "expected"),
        [
            ("C:\\php\\ext\\", "C:/php/ext"),
            ("/usr/lib/php/20230831/", "/usr/lib/php/20230831"),
            ("C:/", "C:/"),
            ("/", "/"),
        ],
    )
    def test_normalize_extension_dir(self, raw: str, expected: str) -> None:
        """Forward slashes, no trailing separator except for roots."""
        assert normalize_extension_dir(raw) == expected


class TestTransformText:
    """Tests for IniTransformer.transform_text."""

    def test_enables_and_sets(self, transformer: IniTransformer, sample_ini_text: str) -> None:
        """Commented extensions are uncommented and settings written in place."""
        text, report = transformer.transform_text(
            sample_ini_text, "", ["curl", "mbstring", "openssl", "redis"], SETTINGS
        )

        assert text == EXPECTED_LARAVEL
        assert report.enabled == ["curl", "mbstring"]
        assert report.already_enabled == ["openssl"]
        assert report.missing == ["redis"]
        assert report.updated == ["memory_limit", "max_execution_time"]
        assert report.added == ["max_input_vars"]
        assert report.changed

    def test_idempotent(self, transformer: IniTransformer, sample_ini_text: str) -> None:
        """A second run over its own output changes nothing."""
        extensions = ["curl", "mbstring", "opcache"]
        first, _ = transformer.transform_text(sample_ini_text, "", extensions, SETTINGS)

        second, report = transformer.transform_text(first, "", extensions, SETTINGS)

        assert second == first
        assert not report.changed
        assert report.enabled == []
        assert report.already_enabled == extensions

    def test_only_targeted_lines_change(
        self, transformer: IniTransformer, sample_ini_text: str
    ) -> None:
        """Lines not named by the request come out unchanged."""
        text, _ = transformer.transform_text(sample_ini_text, "", ["curl"], {})

        before = sample_ini_text.splitlines()
        after = text.splitlines()
        assert len(before) == len(after)
        assert [i for i, (a, b) in enumerate(zip(before, after, strict=True)) if a != b] == [6]

    def test_zend_extension_directive(
        self, transformer: IniTransformer, sample_ini_text: str
    ) -> None:
        """opcache is enabled with zend_extension=."""
        text, report = transformer.transform_text(sample_ini_text, "", ["opcache"], {})

        assert "zend_extension=opcache" in text.splitlines()
        assert ";extension=opcache" not in text
        assert report.enabled == ["opcache"]

    def test_available_extension_inserted_after_last_directive(
        self, transformer: IniTransformer, unavailable: MagicMock, sample_ini_text: str
    ) -> None:
        """An available extension without any line is inserted after the last directive."""
        unavailable.is_available.side_effect = lambda name, _dir: name == "redis"

        text, report = transformer.transform_text(sample_ini_text, "/ext", ["redis"], {})

        lines = text.splitlines()
        assert lines[lines.index(";extension=opcache") + 1] == "extension=redis"
        assert report.enabled == ["redis"]

    def test_loaded_modules_left_alone(
        self, transformer: IniTransformer, sample_ini_text: str
    ) -> None:
        """Modules the executable already loads are reported, not written."""
        text, report = transformer.transform_text(
            sample_ini_text, "", ["redis"], {}, loaded=frozenset({"redis"})
        )

        assert text == sample_ini_text
        assert report.already_loaded == ["redis"]

    def test_duplicate_requests_collapse(
        self, transformer: IniTransformer, sample_ini_text: str
    ) -> None:
        """Repeated names are handled once."""
        _, report = transformer.transform_text(
            sample_ini_text, "", ["curl", "CURL", "php_curl.dll"], {}
        )

        assert report.enabled == ["curl"]

    def test_extension_dir_prepended(
        self, transformer: IniTransformer, sample_ini_text: str, tmp_path: Path
    ) -> None:
        """An existing extension directory is written at the top."""
        ext = tmp_path / "ext"
        ext.mkdir()

        text, report = transformer.transform_text(sample_ini_text, str(ext) + "/", [], {})

        assert text.splitlines()[0] == f'extension_dir = "{ext.as_posix()}"'
        assert report.extension_dir == ext.as_posix()

    def test_extension_dir_replaced(self, transformer: IniTransformer, tmp_path: Path) -> None:
        """A commented extension_dir line is rewritten in place."""
        ext = tmp_path / "ext"
        ext.mkdir()

        text, _ = transformer.transform_text(
            '[PHP]\n; extension_dir = "ext"\n', str(ext), [], {}
        )

        assert text == f'[PHP]\nextension_dir = "{ext.as_posix()}"\n'

    def test_missing_extension_dir_ignored(
        self, transformer: IniTransformer, sample_ini_text: str, tmp_path: Path
    ) -> None:
        """A directory that does not exist is not written."""
        text, report = transformer.transform_text(
            sample_ini_text, str(tmp_path / "absent"), [], {}
        )

        assert text == sample_ini_text
        assert report.extension_dir is None

    def test_settings_without_php_section(self, transformer: IniTransformer) -> None:
        """Without [PHP], new settings go to the end of the file."""
        text, _ = transformer.transform_text("engine = On\n", "", [], {"memory_limit": "1G"})

        assert text == "engine = On\nmemory_limit = 1G\n"

    def test_extension_after_php_header(
        self, transformer: IniTransformer, unavailable: MagicMock
    ) -> None:
        """Without extension lines, new ones follow the [PHP] header."""
        unavailable.is_available.return_value = True

        text, _ = transformer.transform_text("[PHP]\nengine = On\n", "/ext", ["gd"], {})

        assert text == "[PHP]\nextension=gd\nengine = On\n"

    def test_crlf_preserved(self, transformer: IniTransformer) -> None:
        """Windows line endings survive and new lines use them too."""
        text, _ = transformer.transform_text(
            "[PHP]\r\n;extension=curl\r\n", "", ["curl"], {"memory_limit": "512M"}
        )

        assert text == "[PHP]\r\nextension=curl\r\nmemory_limit = 512M\r\n"


class TestCustomize:
    """Tests for IniTransformer.customize and preview."""

    def test_preview_does_not_write(self, transformer: IniTransformer, ini_file: Path) -> None:
        """preview leaves the file and directory untouched."""
        original = ini_file.read_text()

        _, report = transformer.preview(ini_file, "", ["curl"], {})

        assert report.changed
        assert ini_file.read_text() == original
        assert list(ini_file.parent.iterdir()) == [ini_file]

    def test_backup_before_write(self, transformer: IniTransformer, ini_file: Path) -> None:
        """customize backs up the original, then writes the new text."""
        original = ini_file.read_text()

        report = transformer.customize(ini_file, "", ["curl", "mbstring", "redis"], SETTINGS)

        backup = Path(report.backup_path)
        assert backup.name.startswith("php.ini.backup.")
        assert backup.read_text() == original
        assert ini_file.read_text() == EXPECTED_LARAVEL

    def test_loaded_modules_from_probe(
        self, transformer: IniTransformer, fake_probe: MagicMock, ini_file: Path
    ) -> None:
        """The executable's loaded modules are consulted."""
        fake_probe.loaded_modules.return_value = frozenset({"redis"})

        report = transformer.customize(ini_file, "", ["redis"], {}, php_executable="/usr/bin/php")

        fake_probe.loaded_modules.assert_called_once_with("/usr/bin/php")
        assert report.already_loaded == ["redis"]

    def test_backup_failure_aborts(
        self, unavailable: MagicMock, fake_probe: MagicMock, ini_file: Path
    ) -> None:
        """If the backup fails the file is not modified."""
        archive = MagicMock(spec=BackupArchive)
        archive.create_backup.side_effect = BackupError("disk full")
        transformer = IniTransformer(archive=archive, availability=unavailable, probe=fake_probe)
        original = ini_file.read_text()

        with pytest.raises(TransformError, match="was not modified"):
            transformer.customize(ini_file, "", ["curl"], {})

        assert ini_file.read_text() == original

    def test_missing_file(self, transformer: IniTransformer, tmp_path: Path) -> None:
        """A missing php.ini raises IniFileNotFoundError."""
        with pytest.raises(IniFileNotFoundError):
            transformer.customize(tmp_path / "php.ini", "", ["curl"], {})


class TestRepair:
    """Tests for IniTransformer.repair."""

    def test_converts_zend_extensions(self, transformer: IniTransformer, tmp_path: Path) -> None:
        """extension=opcache becomes zend_extension=opcache."""
        ini = tmp_path / "php.ini"
        ini.write_text("[PHP]\nextension=php_opcache.dll\nextension=curl\n")

        report = transformer.repair(ini)

        assert ini.read_text() == "[PHP]\nzend_extension=php_opcache.dll\nextension=curl\n"
        assert report.converted == ["opcache"]
        assert report.changed
        assert Path(report.backup_path).is_file()

    def test_disables_unloadable_and_duplicates(
        self, transformer: IniTransformer, fake_probe: MagicMock, tmp_path: Path
    ) -> None:
        """Broken and duplicate directives are commented out with a reason."""
        ini = tmp_path / "php.ini"
        ini.write_text("extension=imagick\nextension=mbstring\nextension=mbstring\n")
        fake_probe.startup_problems.return_value = StartupProblems(
            unloadable=("imagick",), duplicates=("mbstring",)
        )

        report = transformer.repair(ini, php_executable="/usr/bin/php")

        assert ini.read_text() == (
            ";extension=imagick ; library could not be loaded\n"
            "extension=mbstring\n"
            ";extension=mbstring ; module is already loaded\n"
        )
        assert report.disabled == ["imagick", "mbstring"]
        assert report.reasons["mbstring"] == "module is already loaded"

    def test_clean_file_untouched(self, transformer: IniTransformer, ini_file: Path) -> None:
        """Nothing to repair means no backup and no write."""
        report = transformer.repair(ini_file)

        assert not report.changed
        assert report.backup_path == ""
        assert list(ini_file.parent.iterdir()) == [ini_file]
