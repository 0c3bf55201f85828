"""php.ini document model, edit engine and transformer."""

from phpinictl.ini.availability import (
    ChainedAvailability,
    DpkgAvailability,
    ExtensionAvailability,
    ExtensionFileAvailability,
    default_availability,
)
from phpinictl.ini.document import IniDocument, IniLine, LineKind, normalize_extension_name
from phpinictl.ini.edits import EditList
from phpinictl.ini.transformer import (
    ZEND_EXTENSIONS,
    IniTransformer,
    apply_settings,
    enable_extensions,
    set_extension_dir,
)
from phpinictl.ini.validator import validate_ini, validate_source_file

__all__ = [
    "ZEND_EXTENSIONS",
    "ChainedAvailability",
    "DpkgAvailability",
    "EditList",
    "ExtensionAvailability",
    "ExtensionFileAvailability",
    "IniDocument",
    "IniLine",
    "IniTransformer",
    "LineKind",
    "apply_settings",
    "default_availability",
    "enable_extensions",
    "normalize_extension_name",
    "set_extension_dir",
    "validate_ini",
    "validate_source_file",
]
