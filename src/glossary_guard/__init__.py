"""
glossary-guard — package root

Purpose
- Validate Lokalise glossary CSV files against an explicit registry of checks,
  optionally writing auto-fixed copies, across many files with bounded concurrency.

Import boundary rules
- Must not have side effects at import time (no config loading, no logging init).
- Heavy submodules (engine, ui) are imported lazily by their callers.
"""

__version__ = "0.4.0"

__all__ = ["__version__"]
