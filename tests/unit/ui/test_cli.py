"""
glossary-guard — CLI routing and exit-code tests

Purpose
- Drive ``run_cli`` in-process against real files and assert on exit codes and output.

What this test file should cover
- Exit codes 0/1/2/3/4 for success, validation failure, usage and config errors,
  operation errors, and hard-fail on check errors.
- JSON output shape and the ``version`` command.
- ``--fix`` writing the ``_fixed`` sibling.
"""

from __future__ import annotations

import json
import os
from dataclasses import dataclass
from pathlib import Path

import pytest
from hypothesis import given
from hypothesis import strategies as st

from glossary_guard import __version__
from glossary_guard.checks import CheckRegistry, CheckResult
from glossary_guard.main import ExitCode
from glossary_guard.ui.cli import build_parser, normalize_langs, run_cli

GOOD_GLOSSARY = (
    "term;description;casesensitive;translatable;forbidden;en;en_description;de;de_description\n"
    "checkout;Final purchase step;N;Y;N;checkout;Confirmation;Kasse;Kaufabschluss\n"
)
DUPLICATE_GLOSSARY = "term;description\nsun;star\nsun;also a star\n"
COMMA_GLOSSARY = "term,description,forbidden\nsun,star,yes\n"


@dataclass
class _ErroringCheck:
    name: str = "always-error"
    priority: int = 1
    fail_fast: bool = False

    def evaluate(self, data: bytes, path: str, langs: tuple[str, ...]) -> CheckResult:
        return CheckResult.errored(self.name, "backend unavailable")


@pytest.fixture
def workdir(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    monkeypatch.chdir(tmp_path)
    for name in list(os.environ):
        if name.startswith("GLOSSARY_GUARD_"):
            monkeypatch.delenv(name)
    monkeypatch.setenv("NO_COLOR", "1")
    return tmp_path


def _write(directory: Path, name: str, text: str) -> str:
    path = directory / name
    path.write_text(text, encoding="utf-8")
    return name


@pytest.mark.unit
def test_valid_file_passes_with_exit_zero(
    workdir: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    name = _write(workdir, "glossary.csv", GOOD_GLOSSARY)

    code = run_cli(["validate", "-f", name, "-l", "en,de"])

    out = capsys.readouterr().out
    assert code == ExitCode.SUCCESS
    assert "Validating: glossary.csv" in out
    assert "→ [CRIT] ensure-csv-extension ... PASS" in out
    assert "Result: PASSED" in out
    assert "Total time:" in out
    assert "Overall:" not in out


@pytest.mark.unit
def test_validation_failure_exits_one_and_reports_overall(
    workdir: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    good = _write(workdir, "a.csv", GOOD_GLOSSARY)
    bad = _write(workdir, "b.csv", DUPLICATE_GLOSSARY)

    code = run_cli(["validate", "--files", f"{good},{bad}", "--parallel", "2"])

    out = capsys.readouterr().out
    assert code == ExitCode.VALIDATION_FAILED
    assert out.index("Validating: a.csv") < out.index("Validating: b.csv")
    assert "→ [NORM] ensure-unique-terms ... FAIL" in out
    assert "Overall: 1 passed, 0 warning(s), 1 failed, 0 error(s)" in out


@pytest.mark.unit
def test_missing_file_is_an_operation_error(
    workdir: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    good = _write(workdir, "a.csv", GOOD_GLOSSARY)

    code = run_cli(["validate", "-f", good, "-f", "missing.csv"])

    out = capsys.readouterr().out
    assert code == ExitCode.OPERATION_ERROR
    assert "Validating: missing.csv" in out
    assert "ERROR: " in out


@pytest.mark.unit
def test_json_output_is_machine_readable(
    workdir: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    bad = _write(workdir, "dup.csv", DUPLICATE_GLOSSARY)

    code = run_cli(["validate", "-f", bad, "--json"])

    records = json.loads(capsys.readouterr().out)
    assert code == ExitCode.VALIDATION_FAILED
    assert [record["path"] for record in records] == ["dup.csv"]
    record = records[0]
    assert record["failed"] == 1
    assert record["had_val_fail"] is True
    statuses = {item["name"]: item["status"] for item in record["summary"]["outcomes"]}
    assert statuses["ensure-unique-terms"] == "FAIL"


@pytest.mark.unit
def test_fix_writes_fixed_sibling(workdir: Path, capsys: pytest.CaptureFixture[str]) -> None:
    name = _write(workdir, "glossary.csv", COMMA_GLOSSARY)

    code = run_cli(["validate", "-f", name, "--fix"])

    out = capsys.readouterr().out
    fixed = workdir / "glossary_fixed.csv"
    assert code == ExitCode.SUCCESS
    assert fixed.is_file()
    assert fixed.read_bytes().startswith(b"term;description;forbidden\n")
    assert "wrote fixed file: glossary_fixed.csv" in out
    assert (workdir / name).read_text(encoding="utf-8") == COMMA_GLOSSARY


@pytest.mark.unit
def test_check_error_exit_code_depends_on_hard_fail(
    workdir: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    name = _write(workdir, "glossary.csv", GOOD_GLOSSARY)
    registry = CheckRegistry([_ErroringCheck()])

    soft = run_cli(["validate", "-f", name], registry=registry)
    hard = run_cli(["validate", "-f", name, "--hard-fail-on-error"], registry=registry)

    out = capsys.readouterr().out
    assert soft == ExitCode.VALIDATION_FAILED
    assert hard == ExitCode.CHECK_ERROR
    assert "always-error ... ERROR" in out


@pytest.mark.unit
def test_no_files_is_a_usage_error(workdir: Path, capsys: pytest.CaptureFixture[str]) -> None:
    code = run_cli(["validate"])

    assert code == ExitCode.CONFIG_ERROR
    assert "no files provided" in capsys.readouterr().err


@pytest.mark.unit
def test_unmatched_glob_is_a_usage_error(
    workdir: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    code = run_cli(["validate", "-f", "*.csv"])

    assert code == ExitCode.CONFIG_ERROR
    assert "no files matched" in capsys.readouterr().err


@pytest.mark.unit
def test_empty_registry_is_reported(workdir: Path, capsys: pytest.CaptureFixture[str]) -> None:
    name = _write(workdir, "glossary.csv", GOOD_GLOSSARY)

    code = run_cli(["validate", "-f", name], registry=CheckRegistry())

    assert code == ExitCode.CONFIG_ERROR
    assert "No checks registered. Nothing to run." in capsys.readouterr().err


@pytest.mark.unit
def test_invalid_config_file_is_a_config_error(
    workdir: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    name = _write(workdir, "glossary.csv", GOOD_GLOSSARY)
    _write(workdir, "glossary-guard.toml", "[validate]\nparalel = 3\n")

    code = run_cli(["validate", "-f", name])

    err = capsys.readouterr().err
    assert code == ExitCode.CONFIG_ERROR
    assert "validate.paralel: unknown field" in err


@pytest.mark.unit
def test_config_file_langs_apply_without_flags(
    workdir: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    name = _write(workdir, "glossary.csv", "term;description\nsun;star\n")
    _write(workdir, "glossary-guard.toml", '[validate]\nlangs = ["fr"]\n')

    code = run_cli(["validate", "-f", name])

    out = capsys.readouterr().out
    assert code == ExitCode.VALIDATION_FAILED
    assert "Missing language column(s): fr, fr_description" in out


@pytest.mark.unit
def test_version_command(capsys: pytest.CaptureFixture[str]) -> None:
    assert run_cli(["version"]) == ExitCode.SUCCESS
    assert capsys.readouterr().out.strip() == f"glossary-guard {__version__}"


@pytest.mark.unit
def test_parser_leaves_unset_flags_as_none() -> None:
    namespace = build_parser().parse_args(["validate", "-f", "a.csv", "--no-rerun-after-fix"])

    assert namespace.files == ["a.csv"]
    assert namespace.rerun_after_fix is False
    assert namespace.fix is None
    assert namespace.parallel is None
    assert namespace.log_level is None


@pytest.mark.unit
def test_validate_help_explains_timeout_does_not_stop_sync_checks(
    capsys: pytest.CaptureFixture[str],
) -> None:
    with pytest.raises(SystemExit):
        build_parser().parse_args(["validate", "--help"])

    text = " ".join(capsys.readouterr().out.split())
    assert "validate.check_timeout_seconds" in text
    assert "GLOSSARY_GUARD_VALIDATE_CHECK_TIMEOUT_SECONDS" in text
    assert "keeps running on its worker thread" in text
    assert "not total wall-clock time" in text


@pytest.mark.unit
def test_cli_module_exposes_run_cli_as_its_only_entrypoint() -> None:
    from glossary_guard.ui import cli

    assert "main" not in cli.__all__
    assert not hasattr(cli, "main")


@pytest.mark.unit
@given(
    values=st.lists(
        st.text(alphabet="abcdefgh_-, ", max_size=12),
        max_size=6,
    )
)
def test_normalize_langs_is_sorted_unique_and_trimmed(values: list[str]) -> None:
    langs = normalize_langs(values)

    assert langs == sorted(set(langs))
    assert all(lang and lang == lang.strip() and "," not in lang for lang in langs)
    assert normalize_langs(langs) == langs
