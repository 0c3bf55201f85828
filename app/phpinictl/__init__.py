"""phpinictl - discover PHP installations and tune their php.ini files."""

__version__ = "0.4.0"
