"""Command-line interface router for glossary-guard."""

from __future__ import annotations

import argparse
import asyncio
import contextlib
import json
import os
import signal
import sys
import time
from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass
from typing import Any

from glossary_guard import __version__
from glossary_guard.checks import CheckRegistry, default_registry
from glossary_guard.config import (
    ConfigLoadError,
    ConfigValidationError,
    load_config,
)
from glossary_guard.engine.models import BatchResult, FixMode, RunOptions
from glossary_guard.main import ExitCode
from glossary_guard.observability import LoggingConfig, setup_logging, shutdown_logging
from glossary_guard.ui.render import ReportRenderer
from glossary_guard.utils.concurrency import CancellationToken
from glossary_guard.utils.fs import expand_file_patterns
from glossary_guard.validate import exit_code_for, validate_files


@dataclass(frozen=True, slots=True)
class CLIError(RuntimeError):
    """Typed CLI failure with an explicit process exit code."""

    message: str
    exit_code: int = 1

    def __str__(self) -> str:
        return self.message


# ---------------------------------------------------------------------------
# Parser
# ---------------------------------------------------------------------------


def build_parser() -> argparse.ArgumentParser:
    """Build the argparse command router for all supported CLI workflows."""

    parser = argparse.ArgumentParser(
        prog="glossary-guard",
        description=(
            "glossary-guard — validate and auto-fix Lokalise CSV glossaries.\n\n"
            "Common workflows:\n"
            "  glossary-guard validate -f glossary.csv          Validate one file\n"
            "  glossary-guard validate -f glossary.csv --fix    Also write glossary_fixed.csv\n"
            "  glossary-guard version                           Print the version\n"
        ),
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    common = argparse.ArgumentParser(add_help=False)
    common.add_argument(
        "--config",
        dest="config_path",
        default=None,
        help="Path to TOML config (default: ./glossary-guard.toml if present).",
    )
    common.add_argument(
        "--log-level",
        choices=("DEBUG", "INFO", "WARNING", "ERROR"),
        type=str.upper,
        default=None,
        help="Diagnostic log level written to stderr or the configured log file.",
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    # validate ------------------------------------------------------------
    validate_parser = subparsers.add_parser(
        "validate",
        parents=[common],
        help="Validate glossary files and optionally write fixed copies",
        description=(
            "Run all registered checks against one or more glossary CSV files.\n\n"
            "Examples:\n"
            "  glossary-guard validate -f glossary.csv\n"
            "  glossary-guard validate -f glossary.csv --fix\n"
            "  glossary-guard validate -f a.csv -f b.csv -l en -l de -l fr --fix\n"
            '  glossary-guard validate -f "data/*.csv" --parallel 8\n'
        ),
        epilog=(
            "Per-check timeout: set validate.check_timeout_seconds in the config file or\n"
            "GLOSSARY_GUARD_VALIDATE_CHECK_TIMEOUT_SECONDS. A check that overruns it is\n"
            "reported as ERROR, but a synchronous check body keeps running on its worker\n"
            "thread and the process only exits once that body returns. The timeout bounds\n"
            "when the verdict is decided, not total wall-clock time.\n"
        ),
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    validate_parser.add_argument(
        "-f",
        "--files",
        action="append",
        default=None,
        help="Path(s) to glossary file(s); comma-separated or repeatable, supports globs.",
    )
    validate_parser.add_argument(
        "--parallel",
        type=int,
        default=None,
        help="Maximum number of files processed at once (default: CPU count).",
    )
    validate_parser.add_argument(
        "-l",
        "--langs",
        action="append",
        default=None,
        help="Language codes expected in the header (e.g. en,fr,de or de_DE,pt-BR).",
    )
    validate_parser.add_argument(
        "--fix",
        action="store_true",
        default=None,
        help="Attempt auto-fixes (writes *_fixed.csv on change).",
    )
    validate_parser.add_argument(
        "--rerun-after-fix",
        action=argparse.BooleanOptionalAction,
        default=None,
        help="Re-run validation after a successful fix (default: on).",
    )
    validate_parser.add_argument(
        "--hard-fail-on-error",
        action="store_true",
        default=None,
        help="Exit with code 4 when any check returns ERROR.",
    )
    validate_parser.add_argument(
        "--json",
        action="store_true",
        default=None,
        help="Output results as JSON (machine-readable).",
    )
    validate_parser.add_argument(
        "--no-color",
        action="store_true",
        default=None,
        help="Disable colored output (also respects NO_COLOR env var).",
    )
    validate_parser.set_defaults(handler=_cmd_validate)

    # version -------------------------------------------------------------
    version_parser = subparsers.add_parser("version", help="Print the glossary-guard version")
    version_parser.set_defaults(handler=_cmd_version)

    return parser


# ---------------------------------------------------------------------------
# Entrypoints
# ---------------------------------------------------------------------------


def run_cli(
    argv: Sequence[str] | None = None,
    *,
    registry: CheckRegistry | None = None,
) -> int:
    """Parse argv, route to a command handler, and return process exit code."""

    parser = build_parser()
    namespace = parser.parse_args(list(argv) if argv is not None else None)
    handler = getattr(namespace, "handler", None)
    if not callable(handler):
        parser.print_help(sys.stderr)
        return int(ExitCode.CONFIG_ERROR)
    namespace.registry = registry

    try:
        result = handler(namespace)
    except CLIError as exc:
        print(f"error: {exc}", file=sys.stderr)
        return exc.exit_code
    return int(result)


# ---------------------------------------------------------------------------
# Command handlers
# ---------------------------------------------------------------------------


def _cmd_validate(args: argparse.Namespace) -> int:
    config = _load_effective_config(args)
    validate_section = _section(config, "validate")

    raw_files = _string_sequence(getattr(args, "files", None))
    if not raw_files:
        raise CLIError(
            "no files provided; use --files to specify one or more CSV files",
            exit_code=int(ExitCode.CONFIG_ERROR),
        )
    try:
        files = expand_file_patterns(raw_files)
    except ValueError as exc:
        raise CLIError(str(exc), exit_code=int(ExitCode.CONFIG_ERROR)) from exc

    json_output = validate_section.get("output_format") == "json"
    renderer = ReportRenderer(no_color=bool(validate_section.get("no_color")) or json_output)

    registry = getattr(args, "registry", None)
    if registry is None:
        registry = default_registry()
    if len(registry) == 0:
        sys.stderr.write(renderer.notice("No checks registered. Nothing to run."))
        return int(ExitCode.CONFIG_ERROR)

    options = RunOptions(
        fix_mode=FixMode.IF_NOT_PASS if validate_section.get("fix") else FixMode.NONE,
        rerun_after_fix=bool(validate_section.get("rerun_after_fix", True)),
        hard_fail_on_error=bool(validate_section.get("hard_fail_on_error")),
        check_timeout_seconds=_optional_float(validate_section.get("check_timeout_seconds")),
    )
    langs = normalize_langs(_string_sequence(validate_section.get("langs")))
    parallelism = _resolve_parallelism(validate_section.get("parallel"))
    fixed_suffix = str(validate_section.get("fixed_suffix") or "_fixed")

    handle = setup_logging(LoggingConfig.from_mapping(_section(config, "observability")))
    try:
        started = time.perf_counter()
        batch = asyncio.run(
            _run_batch(
                files,
                registry=registry,
                langs=langs,
                options=options,
                parallelism=parallelism,
                renderer=renderer,
                fixed_suffix=fixed_suffix,
            )
        )
        elapsed = time.perf_counter() - started
    finally:
        shutdown_logging(handle)

    if json_output:
        _emit_json([outcome.to_dict() for outcome in batch.outcomes])
    else:
        for outcome in batch.outcomes:
            if outcome.output:
                sys.stdout.write(outcome.output)
        sys.stdout.write(renderer.footer(batch, elapsed))
        sys.stdout.flush()

    return int(exit_code_for(batch, hard_fail_on_error=options.hard_fail_on_error))


def _cmd_version(args: argparse.Namespace) -> int:
    del args
    print(f"glossary-guard {__version__}")
    return int(ExitCode.SUCCESS)


async def _run_batch(
    files: Sequence[str],
    *,
    registry: CheckRegistry,
    langs: Sequence[str],
    options: RunOptions,
    parallelism: int,
    renderer: ReportRenderer,
    fixed_suffix: str,
) -> BatchResult:
    token = CancellationToken()
    loop = asyncio.get_running_loop()
    installed = False
    with contextlib.suppress(NotImplementedError, RuntimeError):
        # First Ctrl-C stops dispatching; files already in flight finish.
        loop.add_signal_handler(signal.SIGINT, token.cancel)
        installed = True
    try:
        return await validate_files(
            files,
            registry=registry,
            langs=langs,
            options=options,
            parallelism=parallelism,
            renderer=renderer,
            fixed_suffix=fixed_suffix,
            cancel_token=token,
        )
    finally:
        if installed:
            loop.remove_signal_handler(signal.SIGINT)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def normalize_langs(values: Iterable[str]) -> list[str]:
    """Split comma-separated language codes, drop blanks and duplicates, and sort.

    >>> normalize_langs(["fr,en", " de ", "en"])
    ['de', 'en', 'fr']
    """

    seen: set[str] = set()
    for value in values:
        for part in value.split(","):
            code = part.strip()
            if code:
                seen.add(code)
    return sorted(seen)


def _emit_json(payload: object) -> None:
    """Emit a JSON payload to stdout with deterministic formatting."""

    print(json.dumps(payload, indent=2, sort_keys=True, ensure_ascii=False))


def _load_effective_config(args: argparse.Namespace) -> dict[str, Any]:
    config_path = _optional_str(getattr(args, "config_path", None))
    try:
        return load_config(config_path, cli_overrides=_cli_overrides(args))
    except (ConfigLoadError, ConfigValidationError) as exc:
        raise CLIError(str(exc), exit_code=int(ExitCode.CONFIG_ERROR)) from exc


def _cli_overrides(args: argparse.Namespace) -> dict[str, object]:
    langs = _string_sequence(getattr(args, "langs", None))
    return {
        "validate.parallel": getattr(args, "parallel", None),
        "validate.langs": list(langs) if langs else None,
        "validate.fix": getattr(args, "fix", None),
        "validate.rerun_after_fix": getattr(args, "rerun_after_fix", None),
        "validate.hard_fail_on_error": getattr(args, "hard_fail_on_error", None),
        "validate.output_format": "json" if getattr(args, "json", None) else None,
        "validate.no_color": getattr(args, "no_color", None),
        "observability.log_level": getattr(args, "log_level", None),
    }


def _section(config: Mapping[str, object], name: str) -> Mapping[str, object]:
    section = config.get(name)
    return section if isinstance(section, Mapping) else {}


def _resolve_parallelism(value: object) -> int:
    if isinstance(value, bool) or not isinstance(value, int) or value < 1:
        return os.cpu_count() or 1
    return value


def _optional_str(value: object) -> str | None:
    if not isinstance(value, str):
        return None
    cleaned = value.strip()
    return cleaned or None


def _optional_float(value: object) -> float | None:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    return float(value)


def _string_sequence(value: object) -> tuple[str, ...]:
    if value is None:
        return ()
    if isinstance(value, str):
        cleaned = value.strip()
        return () if not cleaned else (cleaned,)
    if not isinstance(value, Sequence):
        raise CLIError("invalid sequence argument", exit_code=int(ExitCode.CONFIG_ERROR))

    parsed: list[str] = []
    for item in value:
        if not isinstance(item, str):
            raise CLIError("invalid sequence argument", exit_code=int(ExitCode.CONFIG_ERROR))
        cleaned = item.strip()
        if cleaned:
            parsed.append(cleaned)
    return tuple(parsed)


__all__ = [
    "CLIError",
    "build_parser",
    "normalize_langs",
    "run_cli",
]
