"""Subprocess-level tests for the ``glossary-guard`` command."""
