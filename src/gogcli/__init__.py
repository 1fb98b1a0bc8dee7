"""gogcli - scriptable command-line client for Google Workspace."""

__version__ = "0.9.0"
