"""Subprocess execution that never raises for a failing command.

Actions treat a non-zero exit as data, not as an exception, so ``run_shell``
always returns a ``ProcessOutput`` carrying the exit code and both streams.
Timeouts and launch failures (missing binary, permission denied) are folded
into the same shape with ``exit_code == -1``. Output is decoded as UTF-8 with
undecodable bytes replaced.

Usage:
    out = run_shell("sf data tree import -p plan.json", cwd=project_root)
    if not out.ok:
        console.error(f"exit {out.exit_code}")
"""

from __future__ import annotations

import subprocess
from dataclasses import dataclass
from pathlib import Path

__all__ = ["ProcessOutput", "run_shell"]


@dataclass(frozen=True, slots=True)
class ProcessOutput:
    """Outcome of one subprocess execution.

    Attributes:
        command: The command line as executed.
        exit_code: Process exit code, -1 if it never ran to completion.
        stdout: Captured standard output.
        stderr: Captured standard error.
    """

    command: str
    exit_code: int
    stdout: str
    stderr: str

    @property
    def ok(self) -> bool:
        return self.exit_code == 0

    @property
    def combined(self) -> str:
        """Non-empty streams joined by a newline, stdout first."""
        return "\n".join(s for s in (self.stdout, self.stderr) if s)

    def __str__(self) -> str:
        return f"{self.command} (exit {self.exit_code})"


def _partial(stream: str | bytes | None) -> str:
    if isinstance(stream, bytes):
        return stream.decode("utf-8", errors="replace")
    return stream or ""


def run_shell(
    command: str,
    cwd: Path | None = None,
    env: dict[str, str] | None = None,
    *,
    timeout: float | None = None,
) -> ProcessOutput:
    """Run a raw command string through the system shell.

    Args:
        command: Shell command line, run as-is.
        cwd: Working directory (current directory if None).
        env: Environment variables (inherited if None).
        timeout: Maximum seconds to wait (None for no limit).
    """
    try:
        proc = subprocess.run(
            command,
            cwd=str(cwd) if cwd is not None else None,
            env=env,
            shell=True,
            capture_output=True,
            encoding="utf-8",
            errors="replace",
            timeout=timeout,
            check=False,
        )
    except subprocess.TimeoutExpired as e:
        return ProcessOutput(
            command=command,
            exit_code=-1,
            stdout=_partial(e.stdout),
            stderr=f"Command timed out after {timeout}s",
        )
    except OSError as e:
        return ProcessOutput(command=command, exit_code=-1, stdout="", stderr=str(e))

    return ProcessOutput(
        command=command,
        exit_code=proc.returncode,
        stdout=proc.stdout or "",
        stderr=proc.stderr or "",
    )
