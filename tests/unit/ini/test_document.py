"""Unit tests for the line-oriented php.ini document."""

import pytest
from phpinictl.ini.document import IniDocument, LineKind, normalize_extension_name


class TestClassification:
    """Tests for line classification."""

    def test_classifies_sample(self, sample_ini_text: str) -> None:
        """Sections, settings, comments and extension lines are told apart."""
        kinds = [e.kind for e in IniDocument(sample_ini_text).entries]

        assert kinds == [
            LineKind.SECTION,
            LineKind.SETTING,
            LineKind.SETTING,
            LineKind.SETTING,
            LineKind.BLANK,
            LineKind.COMMENT,
            LineKind.EXTENSION,
            LineKind.EXTENSION,
            LineKind.EXTENSION,
            LineKind.EXTENSION,
            LineKind.BLANK,
            LineKind.SECTION,
            LineKind.SETTING,
        ]

    def test_commented_directive(self) -> None:
        """Leading semicolons mark a directive as commented."""
        [entry] = IniDocument(";;extension=gd\n").entries

        assert entry.commented
        assert entry.extension_name == "gd"

    def test_trailing_comment_removed_from_active_value(self) -> None:
        """Active values drop a trailing '; comment'."""
        [entry] = IniDocument("memory_limit = 256M ; raised\n").entries

        assert entry.key == "memory_limit"
        assert entry.value == "256M"

    def test_section_tracking(self, sample_ini_text: str) -> None:
        """Each line knows its enclosing section."""
        entries = IniDocument(sample_ini_text).entries

        assert entries[2].section == "PHP"
        assert entries[12].section == "Date"

    def test_zend_extension(self) -> None:
        """zend_extension lines are their own kind."""
        [entry] = IniDocument('zend_extension="C:/php/ext/php_opcache.dll"\n').entries

        assert entry.kind == LineKind.ZEND_EXTENSION
        assert entry.extension_name == "opcache"


class TestNormalizeExtensionName:
    """Tests for normalize_extension_name function."""

    @pytest.mark.parametrize(
        ("value", "expected"),
        [
            ("curl", "curl"),
            ("php_curl.dll", "curl"),
            ('"PDO_MYSQL"', "pdo_mysql"),
            ("/usr/lib/php/20230831/redis.so", "redis"),
            ("C:\\php\\ext\\php_gd.dll", "gd"),
            ("xdebug.dylib", "xdebug"),
            ("intl ; needed by laravel", "intl"),
        ],
    )
    def test_forms(self, value: str, expected: str) -> None:
        """File names, paths, quotes and comments reduce to the bare name."""
        assert normalize_extension_name(value) == expected


class TestQueries:
    """Tests for document queries."""

    def test_extension_lines(self, sample_ini_text: str) -> None:
        """extension_lines filters by name and commented state."""
        doc = IniDocument(sample_ini_text)

        assert [e.index for e in doc.extension_lines("curl", commented=True)] == [6]
        assert doc.extension_lines("curl", commented=False) == []
        assert [e.index for e in doc.extension_lines("openssl", commented=False)] == [8]

    def test_last_extension_index(self, sample_ini_text: str) -> None:
        """The last extension directive, commented or not."""
        assert IniDocument(sample_ini_text).last_extension_index() == 9
        assert IniDocument("[PHP]\n").last_extension_index() is None

    def test_section_end_index(self, sample_ini_text: str) -> None:
        """The last non-blank line before the next section header."""
        doc = IniDocument(sample_ini_text)

        assert doc.section_index("php") == 0
        assert doc.section_end_index("PHP") == 9
        assert doc.section_end_index("Session") is None

    def test_find_setting_prefers_last_active(self) -> None:
        """The last active occurrence wins over commented ones."""
        doc = IniDocument(
            ";memory_limit = 64M\nmemory_limit = 128M\n;memory_limit = 1G\nmemory_limit = 256M\n"
        )

        assert doc.find_setting("memory_limit") == 3

    def test_find_setting_falls_back_to_last_commented(self) -> None:
        """Without an active line the last commented one is chosen."""
        doc = IniDocument(";max_input_vars = 1\n;max_input_vars = 1000\n")

        assert doc.find_setting("max_input_vars") == 1

    def test_find_setting_escapes_key(self) -> None:
        """Keys with dots are matched literally."""
        doc = IniDocument("opcacheXenable = 1\n;opcache.enable = 0\n")

        assert doc.find_setting("opcache.enable") == 1
        assert doc.find_setting("upload_max_filesize") is None


class TestRender:
    """Tests for rendering edits."""

    def test_no_edits_reproduces_text(self, sample_ini_text: str) -> None:
        """An empty edit list renders the original text."""
        doc = IniDocument(sample_ini_text)

        assert doc.render(doc.edits()) == sample_ini_text

    def test_preserves_mixed_line_endings(self) -> None:
        """Untouched lines keep their endings; new lines use the dominant one."""
        text = "[PHP]\r\nengine = On\nextension=curl\r\n"
        doc = IniDocument(text)
        edits = doc.edits()
        edits.insert_after(2, "extension=gd")

        assert doc.render(edits) == "[PHP]\r\nengine = On\nextension=curl\r\nextension=gd\r\n"

    def test_missing_trailing_newline_kept(self) -> None:
        """A file without a final newline renders without one."""
        doc = IniDocument("[PHP]\nengine = On")
        edits = doc.edits()
        edits.replace(1, "engine = Off")

        assert doc.render(edits) == "[PHP]\nengine = Off"

    def test_empty_document(self) -> None:
        """Inserting into an empty document yields the new line."""
        doc = IniDocument("")
        edits = doc.edits()
        edits.prepend("memory_limit = 512M")

        assert doc.render(edits) == "memory_limit = 512M\n"
