"""Stable constants shared across the engine, config, and CLI layers."""

from __future__ import annotations

from typing import Final

# Schema version for persisted config files.
CONFIG_SCHEMA_VERSION: Final[int] = 1

# Config discovery.
DEFAULT_CONFIG_FILE: Final[str] = "glossary-guard.toml"
ENV_PREFIX: Final[str] = "GLOSSARY_GUARD_"

# Fixed-file naming.
DEFAULT_FIXED_SUFFIX: Final[str] = "_fixed"

# Glossary CSV shape.
GLOSSARY_DELIMITER: Final[str] = ";"
GLOSSARY_EXTENSION: Final[str] = ".csv"
REQUIRED_COLUMNS: Final[tuple[str, ...]] = ("term", "description")
FLAG_COLUMNS: Final[tuple[str, ...]] = ("casesensitive", "translatable", "forbidden")
FLAG_VALUES: Final[tuple[str, ...]] = ("Y", "N")
LANG_DESCRIPTION_SUFFIX: Final[str] = "_description"

# Report layout.
REPORT_SEPARATOR_WIDTH: Final[int] = 72

__all__ = [
    "CONFIG_SCHEMA_VERSION",
    "DEFAULT_CONFIG_FILE",
    "DEFAULT_FIXED_SUFFIX",
    "ENV_PREFIX",
    "FLAG_COLUMNS",
    "FLAG_VALUES",
    "GLOSSARY_DELIMITER",
    "GLOSSARY_EXTENSION",
    "LANG_DESCRIPTION_SUFFIX",
    "REPORT_SEPARATOR_WIDTH",
    "REQUIRED_COLUMNS",
]
