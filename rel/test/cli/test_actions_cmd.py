from __future__ import annotations

from pathlib import Path

import pytest
import typer

from rel.actions.model import PhaseKind
from rel.cache.store import CACHE_FILE_ENV_VAR, NO_CACHE_ENV_VARS, KeyValueCache
from rel.cli.context import CLIContext
from rel.core.config import load_project_config
from rel.core.errors import ErrorCode
from rel.output.console import MockConsole

CONFIG = """
[[commands_post_deploy]]
id = "first"
label = "First step"
command = "exit 0"

[[commands_post_deploy]]
id = "seed"
label = "Seed once"
command = "exit 0"
run_only_once_by_org = true

[[commands_post_deploy]]
id = "check-only"
label = "Only on validation"
command = "exit 0"
context = "check-only"
"""


def _ctx(root: Path, content: str = CONFIG) -> CLIContext:
    (root / ".rel.toml").write_text(content, encoding="utf-8")
    return CLIContext(project_root=root, config=load_project_config(root).unwrap(), console=MockConsole())


def _patch(monkeypatch: pytest.MonkeyPatch, tmp_path: Path, ctx: CLIContext) -> Path:
    import rel.cli.commands.actions as actions_cmd

    monkeypatch.setattr(actions_cmd, "build_context", lambda **_: ctx)
    cache_file = tmp_path / "user-cache" / "cache.json"
    monkeypatch.setenv(CACHE_FILE_ENV_VAR, str(cache_file))
    for name in NO_CACHE_ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    return cache_file


def _run(**overrides: object) -> None:
    import rel.cli.commands.actions as actions_cmd

    kwargs: dict[str, object] = {
        "phase": PhaseKind.POST,
        "target_org": "org-1",
        "check": False,
        "deployment_failed": False,
        "pull_request": None,
        "branch": None,
        "report": None,
    }
    kwargs.update(overrides)
    actions_cmd.run(**kwargs)  # type: ignore[arg-type]


class TestRunCommand:
    def test_success_records_run_once(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        ctx = _ctx(tmp_path)
        cache_file = _patch(monkeypatch, tmp_path, ctx)

        _run()

        console = ctx.console
        assert isinstance(console, MockConsole)
        assert console.find("post-deploy (process): passed")
        cache = KeyValueCache(cache_file)
        cache.open()
        assert cache.get("run-once:seed@org-1") is True

    def test_second_run_skips_run_once(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        _patch(monkeypatch, tmp_path, _ctx(tmp_path))
        _run()

        ctx = _ctx(tmp_path)
        _patch(monkeypatch, tmp_path, ctx)
        _run()

        assert isinstance(ctx.console, MockConsole)
        assert ctx.console.find("already run for this target")

    def test_blocking_failure_exits(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        ctx = _ctx(tmp_path, '[[commands_post_deploy]]\nid = "bad"\nlabel = "Bad"\ncommand = "exit 1"\n')
        _patch(monkeypatch, tmp_path, ctx)

        with pytest.raises(typer.Exit) as exc:
            _run()

        assert exc.value.exit_code == int(ErrorCode.ACTIONS_FAILED)

    def test_allowed_failure_passes(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        ctx = _ctx(
            tmp_path,
            '[[commands_post_deploy]]\nid = "bad"\nlabel = "Bad"\ncommand = "exit 1"\nallow_failure = true\n',
        )
        _patch(monkeypatch, tmp_path, ctx)

        _run()

    def test_writes_report(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        _patch(monkeypatch, tmp_path, _ctx(tmp_path))
        report = tmp_path / "out" / "actions.md"

        _run(report=report)

        content = report.read_text(encoding="utf-8")
        assert "### Post-deployment actions: ✅ passed" in content
        assert "`seed`" in content
        assert "`check-only`" not in content

    def test_invalid_declaration_is_user_error(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        ctx = _ctx(tmp_path, '[[commands_post_deploy]]\nid = "x"\n')
        _patch(monkeypatch, tmp_path, ctx)

        with pytest.raises(typer.Exit) as exc:
            _run()

        assert exc.value.exit_code == int(ErrorCode.USER_ERROR)


class TestValidateCommand:
    def test_valid(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        import rel.cli.commands.actions as actions_cmd

        ctx = _ctx(tmp_path)
        _patch(monkeypatch, tmp_path, ctx)

        actions_cmd.validate(phase=PhaseKind.POST, check=False, pull_request=None, branch=None)

        assert isinstance(ctx.console, MockConsole)
        assert ctx.console.find("2 action(s) valid")

    def test_invalid_exits_without_running(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        import rel.cli.commands.actions as actions_cmd

        marker = tmp_path / "ran"
        ctx = _ctx(
            tmp_path,
            f'[[commands_post_deploy]]\nid = "touch"\nlabel = "Touch"\ncommand = "touch {marker}"\n\n'
            '[[commands_post_deploy]]\nid = "script"\nlabel = "Script"\ntype = "script"\n'
            'parameters = { scriptPath = "missing.apex" }\n\n'
            '[[commands_post_deploy]]\nid = "manual"\nlabel = "Manual"\ntype = "manual"\n',
        )
        _patch(monkeypatch, tmp_path, ctx)

        with pytest.raises(typer.Exit) as exc:
            actions_cmd.validate(phase=PhaseKind.POST, check=False, pull_request=None, branch=None)

        assert exc.value.exit_code == int(ErrorCode.USER_ERROR)
        assert not marker.exists()
        assert isinstance(ctx.console, MockConsole)
        assert ctx.console.find("error: [script]: Script")
        assert ctx.console.find("warning: [manual]: Manual: No instructions provided")


class TestListCommand:
    def test_lists_all_declared(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        import rel.cli.commands.actions as actions_cmd

        ctx = _ctx(tmp_path)
        _patch(monkeypatch, tmp_path, ctx)

        actions_cmd.list_actions(phase=PhaseKind.POST, check=False, branch=None)

        assert isinstance(ctx.console, MockConsole)
        assert ctx.console.messages[0] == "3 action(s) declared for post-deploy"
        assert ctx.console.find("[seed]: Seed once [command, all] run_only_once_by_org")
