"""Tests for rel.core.errors module."""

from __future__ import annotations

from rel.core.errors import ErrorCode


class TestErrorCode:
    """Test exit code values stay stable."""

    def test_values(self) -> None:
        assert ErrorCode.OK == 0
        assert ErrorCode.USER_ERROR == 1
        assert ErrorCode.ENV_ERROR == 2
        assert ErrorCode.ACTIONS_FAILED == 3
        assert ErrorCode.IO_ERROR == 5

    def test_str(self) -> None:
        assert str(ErrorCode.ACTIONS_FAILED) == "actions failed"

    def test_is_success(self) -> None:
        assert ErrorCode.OK.is_success
        assert not ErrorCode.ACTIONS_FAILED.is_success

    def test_usable_as_exit_code(self) -> None:
        assert int(ErrorCode.IO_ERROR) == 5
