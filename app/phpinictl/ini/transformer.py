"""php.ini transformation: enable extensions and apply settings.

The pure functions in this module only record edits on an EditList and
classify each request in a report. IniTransformer adds the file side:
read, back up, render and write.
"""

import logging
from collections.abc import Iterable, Mapping
from pathlib import Path

from phpinictl.backups.archive import BackupArchive
from phpinictl.core.fileaccess import DirectFileAccess, PrivilegedFileAccess
from phpinictl.core.platform import PlatformContext
from phpinictl.discovery.probe import PhpProbe, StartupProblems
from phpinictl.errors import BackupError, TransformError
from phpinictl.ini.availability import ExtensionAvailability, default_availability
from phpinictl.ini.document import IniDocument, IniLine, LineKind, normalize_extension_name
from phpinictl.ini.edits import EditList
from phpinictl.models.report import RepairReport, TransformReport

logger = logging.getLogger(__name__)

# Extensions that hook the engine and must be loaded with zend_extension=
ZEND_EXTENSIONS: frozenset[str] = frozenset({"opcache", "xdebug"})

PHP_SECTION = "PHP"

SettingValue = str | int


def directive_for(name: str, zend_extensions: Iterable[str] = ZEND_EXTENSIONS) -> str:
    """Return 'zend_extension' or 'extension' for an extension name."""
    return "zend_extension" if name in zend_extensions else "extension"


def format_value(value: SettingValue) -> str:
    """Render a setting value; booleans become On/Off."""
    if isinstance(value, bool):
        return "On" if value else "Off"
    return str(value)


def format_setting(key: str, value: SettingValue) -> str:
    """Render a 'key = value' line."""
    return f"{key} = {format_value(value)}"


def normalize_extension_dir(path: str) -> str:
    """Use forward slashes and drop a trailing separator."""
    normalized = path.replace("\\", "/")
    if len(normalized) > 1 and normalized.endswith("/") and not normalized.endswith(":/"):
        normalized = normalized.rstrip("/")
    return normalized


def _extension_anchor(doc: IniDocument) -> int | None:
    """Line after which new extension directives are inserted.

    After the last extension directive, else after the [PHP] header,
    else None for end of file.
    """
    index = doc.last_extension_index()
    if index is not None:
        return index
    return doc.section_index(PHP_SECTION)


def _insert(edits: EditList, anchor: int | None, line: str) -> None:
    if anchor is None:
        edits.append(line)
    else:
        edits.insert_after(anchor, line)


def set_extension_dir(
    doc: IniDocument,
    edits: EditList,
    extension_dir: str | None,
    report: TransformReport,
) -> None:
    """Point extension_dir at an existing directory.

    An existing extension_dir line, commented or not, is replaced;
    otherwise the directive is prepended to the file. Missing
    directories are ignored.
    """
    if not extension_dir or not Path(extension_dir).is_dir():
        return

    normalized = normalize_extension_dir(extension_dir)
    line = f'extension_dir = "{normalized}"'
    index = doc.find_setting("extension_dir")
    if index is None:
        edits.prepend(line)
    elif doc.entries[index].text != line:
        edits.replace(index, line)
    report.extension_dir = normalized


def enable_extensions(
    doc: IniDocument,
    edits: EditList,
    extensions: Iterable[str],
    *,
    extension_dir: str,
    availability: ExtensionAvailability,
    report: TransformReport,
    loaded: frozenset[str] = frozenset(),
    zend_extensions: frozenset[str] = ZEND_EXTENSIONS,
) -> None:
    """Record edits enabling each extension, in input order.

    Per extension: an active directive means already enabled; a module
    the executable already loads is left alone; a commented directive is
    uncommented in place; otherwise a new directive is inserted if the
    extension is available, and it is reported missing if not.
    """
    anchor = _extension_anchor(doc)
    seen: set[str] = set()
    for requested in extensions:
        name = normalize_extension_name(requested)
        if not name or name in seen:
            continue
        seen.add(name)
        line = f"{directive_for(name, zend_extensions)}={name}"

        if doc.extension_lines(name, commented=False):
            report.already_enabled.append(name)
            continue
        if name in loaded:
            report.already_loaded.append(name)
            continue

        commented = [
            e for e in doc.extension_lines(name, commented=True) if not edits.is_replaced(e.index)
        ]
        if commented:
            # The last one skips documentation examples earlier in the file
            edits.replace(commented[-1].index, line)
            report.enabled.append(name)
        elif availability.is_available(name, extension_dir):
            _insert(edits, anchor, line)
            report.enabled.append(name)
        else:
            logger.debug("Extension %s not available in %s", name, extension_dir or "-")
            report.missing.append(name)


def apply_settings(
    doc: IniDocument,
    edits: EditList,
    settings: Mapping[str, SettingValue],
    report: TransformReport,
) -> None:
    """Record edits writing each setting, in input order.

    An existing line (active or commented) is rewritten as
    'key = value'; otherwise the line is added at the end of the [PHP]
    section, or at the end of the file without one.
    """
    anchor = doc.section_end_index(PHP_SECTION)
    for key, value in settings.items():
        line = format_setting(key, value)
        index = doc.find_setting(key)
        if index is None:
            _insert(edits, anchor, line)
            report.added.append(key)
            continue
        if edits.is_replaced(index):
            logger.warning("Setting %s shares a line with another edit, skipped", key)
            continue
        if doc.entries[index].text != line:
            edits.replace(index, line)
        report.updated.append(key)


def _disable_line(entry: IniLine, reason: str) -> str:
    return f";{entry.text.strip()} ; {reason}"


class IniTransformer:
    """Applies extension and settings changes to php.ini files.

    Args:
        file_access: Reads and writes the ini and its backups.
        archive: Backup archive; defaults to one sharing file_access.
        availability: Decides whether missing directives can be added.
        probe: Used to ask the executable which modules are loaded.
        ctx: Platform, used to build the default availability strategy.
        zend_extensions: Extensions loaded with zend_extension=.
    """

    def __init__(
        self,
        file_access: PrivilegedFileAccess | None = None,
        archive: BackupArchive | None = None,
        availability: ExtensionAvailability | None = None,
        probe: PhpProbe | None = None,
        ctx: PlatformContext | None = None,
        zend_extensions: frozenset[str] = ZEND_EXTENSIONS,
    ) -> None:
        self._files = file_access or DirectFileAccess()
        self._archive = archive or BackupArchive(self._files)
        self._availability = availability or default_availability(ctx or PlatformContext.current())
        self._probe = probe or PhpProbe()
        self._zend = zend_extensions

    def transform_text(
        self,
        text: str,
        extension_dir: str,
        extensions: Iterable[str],
        settings: Mapping[str, SettingValue],
        *,
        loaded: frozenset[str] = frozenset(),
    ) -> tuple[str, TransformReport]:
        """Transform ini text without touching the filesystem.

        Returns:
            The new text and the report describing the changes.
        """
        doc = IniDocument(text)
        edits = doc.edits()
        report = TransformReport()
        set_extension_dir(doc, edits, extension_dir, report)
        enable_extensions(
            doc,
            edits,
            extensions,
            extension_dir=extension_dir,
            availability=self._availability,
            report=report,
            loaded=loaded,
            zend_extensions=self._zend,
        )
        apply_settings(doc, edits, settings, report)
        new_text = doc.render(edits)
        report.changed = new_text != text
        return new_text, report

    def _loaded(self, php_executable: str) -> frozenset[str]:
        if not php_executable:
            return frozenset()
        return self._probe.loaded_modules(php_executable)

    def preview(
        self,
        ini_path: Path | str,
        extension_dir: str,
        extensions: Iterable[str],
        settings: Mapping[str, SettingValue],
        *,
        php_executable: str = "",
    ) -> tuple[str, TransformReport]:
        """Compute the result of customize() without writing or backing up."""
        text = self._files.read_text(Path(ini_path))
        return self.transform_text(
            text, extension_dir, extensions, settings, loaded=self._loaded(php_executable)
        )

    def _backup(self, ini_path: Path) -> str:
        try:
            return self._archive.create_backup(ini_path, strict=True)
        except BackupError as e:
            msg = f"Aborted: {ini_path} was not modified because the backup failed ({e})"
            raise TransformError(msg) from e

    def customize(
        self,
        ini_path: Path | str,
        extension_dir: str,
        extensions: Iterable[str],
        settings: Mapping[str, SettingValue],
        *,
        php_executable: str = "",
    ) -> TransformReport:
        """Back up and rewrite a php.ini.

        Args:
            ini_path: The php.ini to rewrite.
            extension_dir: Directory holding extension binaries.
            extensions: Extension names to enable.
            settings: Settings to write.
            php_executable: If given, modules it already loads are left
                untouched.

        Returns:
            The report, with backup_path set.

        Raises:
            IniFileNotFoundError: If the ini file does not exist.
            IniPermissionError: If it cannot be read or written.
            TransformError: If the backup failed; the file is untouched.
        """
        ini_path = Path(ini_path)
        new_text, report = self.preview(
            ini_path, extension_dir, extensions, settings, php_executable=php_executable
        )
        report.backup_path = self._backup(ini_path)
        if report.changed:
            self._files.write_text(ini_path, new_text)
        logger.info(
            "Updated %s: %d extension(s) enabled, %d missing, %d setting(s) written",
            ini_path,
            len(report.enabled),
            len(report.missing),
            report.settings_count,
        )
        return report

    def repair(self, ini_path: Path | str, php_executable: str = "") -> RepairReport:
        """Fix extension directives PHP cannot load as written.

        Zend-API extensions loaded with extension= are switched to
        zend_extension=. With an executable, directives for libraries PHP
        cannot find are commented out, as are duplicates of modules it
        reports as already loaded.

        Raises:
            IniFileNotFoundError: If the ini file does not exist.
            IniPermissionError: If it cannot be read or written.
            TransformError: If the backup failed; the file is untouched.
        """
        ini_path = Path(ini_path)
        text = self._files.read_text(ini_path)
        doc = IniDocument(text)
        edits = doc.edits()
        report = RepairReport()

        problems = (
            self._probe.startup_problems(php_executable) if php_executable else StartupProblems()
        )
        for name in problems.unloadable:
            reason = "library could not be loaded"
            for entry in doc.extension_lines(name, commented=False):
                edits.replace(entry.index, _disable_line(entry, reason))
                if name not in report.disabled:
                    report.disabled.append(name)
                    report.reasons[name] = reason
        for name in problems.duplicates:
            reason = "module is already loaded"
            active = [
                e
                for e in doc.extension_lines(name, commented=False)
                if not edits.is_replaced(e.index)
            ]
            # A single directive duplicates a compiled-in module
            for entry in active[1:] if len(active) > 1 else active:
                edits.replace(entry.index, _disable_line(entry, reason))
                if name not in report.disabled:
                    report.disabled.append(name)
                    report.reasons[name] = reason

        for entry in doc.entries:
            if (
                entry.kind == LineKind.EXTENSION
                and not entry.commented
                and entry.extension_name in self._zend
                and not edits.is_replaced(entry.index)
            ):
                edits.replace(entry.index, f"zend_extension={entry.value}")
                report.converted.append(entry.extension_name)

        new_text = doc.render(edits)
        if new_text == text:
            return report

        report.backup_path = self._backup(ini_path)
        self._files.write_text(ini_path, new_text)
        report.changed = True
        logger.info(
            "Repaired %s: %d converted, %d disabled",
            ini_path,
            len(report.converted),
            len(report.disabled),
        )
        return report
