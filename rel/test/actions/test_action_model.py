from __future__ import annotations

import pytest

from rel.actions.model import (
    ActionContext,
    ActionResult,
    ActionStatus,
    ActionType,
    DeclaredAction,
    Phase,
    PhaseKind,
    PullRequestRef,
    parse_declared_action,
    parse_declared_actions,
)
from rel.core.result import Err, Ok


class TestActionResult:
    def test_skipped_requires_reason(self) -> None:
        with pytest.raises(ValueError):
            ActionResult(ActionStatus.SKIPPED)

    def test_manual_requires_reason(self) -> None:
        with pytest.raises(ValueError):
            ActionResult(ActionStatus.MANUAL, output="do it")

    def test_failed_reason_optional(self) -> None:
        assert ActionResult.failed().skipped_reason is None

    def test_manual_factory(self) -> None:
        result = ActionResult.manual("Click publish")
        assert result.status == ActionStatus.MANUAL
        assert result.output == "Click publish"
        assert result.skipped_reason

    def test_is_failed(self) -> None:
        assert ActionResult.failed("x").is_failed
        assert not ActionResult.skipped("x").is_failed


class TestEnums:
    @pytest.mark.parametrize(
        ("name", "expected"),
        [
            ("command", ActionType.COMMAND),
            (" Apex ", ActionType.SCRIPT),
            ("data", ActionType.DATA_IMPORT),
            ("publish-community", ActionType.PUBLISH_CONTENT),
            ("teleport", None),
        ],
    )
    def test_action_type_parse(self, name: str, expected: ActionType | None) -> None:
        assert ActionType.parse(name) == expected

    def test_context_aliases(self) -> None:
        assert ActionContext.parse("check-deployment-only") == ActionContext.CHECK_ONLY
        assert ActionContext.parse("process-deployment-only") == ActionContext.PROCESS_ONLY
        assert ActionContext.parse("sometimes") is None


class TestPhase:
    def test_accepts(self) -> None:
        process = Phase(PhaseKind.PRE)
        check = Phase(PhaseKind.PRE, check_only=True)

        assert process.accepts(ActionContext.ALL)
        assert process.accepts(ActionContext.PROCESS_ONLY)
        assert not process.accepts(ActionContext.CHECK_ONLY)
        assert check.accepts(ActionContext.CHECK_ONLY)
        assert not check.accepts(ActionContext.PROCESS_ONLY)

    def test_config_keys(self) -> None:
        phase = Phase(PhaseKind.POST)
        assert phase.config_key == "commands_post_deploy"
        assert phase.legacy_config_key == "commandsPostDeploy"

    def test_str(self) -> None:
        assert str(Phase(PhaseKind.PRE, check_only=True)) == "pre-deploy (check)"


class TestDeclaredAction:
    def test_attach_result_once(self) -> None:
        action = DeclaredAction(id="a", label="A")
        action.attach_result(ActionResult.success())
        with pytest.raises(ValueError):
            action.attach_result(ActionResult.success())

    def test_param_first_match(self) -> None:
        action = DeclaredAction(id="a", label="A", parameters={"apexScript": "x.apex"})
        assert action.param("scriptPath", "apexScript") == "x.apex"
        assert action.param("missing") is None

    def test_describe(self) -> None:
        assert DeclaredAction(id="a", label="Seed data").describe() == "[a]: Seed data"


class TestParseDeclaredAction:
    def test_full_table(self) -> None:
        parsed = parse_declared_action(
            {
                "id": "seed",
                "label": "Seed",
                "type": "data-import",
                "parameters": {"dataWorkspace": "Accounts"},
                "context": "process-only",
                "skipIfError": True,
                "allow_failure": True,
                "runOnlyOnceByOrg": True,
                "pullRequest": {"id": "42", "webUrl": "https://example.test/pr/42"},
            },
            index=0,
        )

        assert isinstance(parsed, Ok)
        action = parsed.value
        assert action.action_type == ActionType.DATA_IMPORT
        assert action.context == ActionContext.PROCESS_ONLY
        assert action.skip_if_error and action.allow_failure and action.run_only_once_by_org
        assert action.pull_request == PullRequestRef(id="42", url="https://example.test/pr/42")

    def test_defaults(self) -> None:
        action = parse_declared_action({"id": "a", "label": "A"}, index=0).unwrap()
        assert action.type_name == "command"
        assert action.context == ActionContext.ALL
        assert not action.skip_if_error
        assert action.parameters == {}

    def test_unknown_type_is_accepted(self) -> None:
        action = parse_declared_action({"id": "a", "label": "A", "type": "teleport"}, index=0).unwrap()
        assert action.action_type is None
        assert action.type_name == "teleport"

    @pytest.mark.parametrize(
        ("raw", "fragment"),
        [
            ("not a table", "must be a table"),
            ({"label": "A"}, "has no id"),
            ({"id": "a"}, "has no label"),
            ({"id": "a", "label": "A", "context": "sometimes"}, "unknown context"),
        ],
    )
    def test_errors(self, raw: object, fragment: str) -> None:
        parsed = parse_declared_action(raw, index=2, source=".rel.toml")
        assert isinstance(parsed, Err)
        assert fragment in parsed.error.message
        assert "action #3 in .rel.toml" in parsed.error.message


class TestParseDeclaredActions:
    def test_duplicate_ids_rejected(self) -> None:
        parsed = parse_declared_actions([{"id": "a", "label": "A"}, {"id": "a", "label": "B"}])
        assert isinstance(parsed, Err)
        assert "duplicate action id [a]" in parsed.error.message

    def test_known_ids_updated(self) -> None:
        known = {"base"}
        parsed = parse_declared_actions([{"id": "a", "label": "A"}], known_ids=known)
        assert isinstance(parsed, Ok)
        assert known == {"base", "a"}

    def test_clash_with_known_ids(self) -> None:
        parsed = parse_declared_actions([{"id": "base", "label": "A"}], known_ids={"base"})
        assert isinstance(parsed, Err)
