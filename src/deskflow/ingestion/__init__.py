"""Directory discovery for the catalog."""

from .discovery import DesktopScanner, build_entry, is_hidden_or_system, probe_file

__all__ = ["DesktopScanner", "build_entry", "is_hidden_or_system", "probe_file"]
