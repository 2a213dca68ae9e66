"""Command-line surface: argument routing and report rendering."""

from glossary_guard.ui.render import SEPARATOR, FixedFileNote, ReportRenderer

__all__ = ["FixedFileNote", "ReportRenderer", "SEPARATOR"]
