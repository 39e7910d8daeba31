"""Running external tools.

winget, choco, scoop (through PowerShell), robocopy and reg are all run
through run_command(). Their output mixes console code pages, so it is
decoded as UTF-8 with replacement characters instead of failing on bytes
that do not decode.
"""

import logging
import os
import shutil
import subprocess
from dataclasses import dataclass

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 600.0


@dataclass(frozen=True, slots=True)
class CommandResult:
    """Captured output and exit code of a finished tool."""

    stdout: str
    stderr: str
    returncode: int

    @property
    def success(self) -> bool:
        return self.returncode == 0


def run_command(
    args: list[str],
    *,
    timeout: float | None = DEFAULT_TIMEOUT,
    cwd: str | None = None,
) -> CommandResult:
    """Run a tool to completion and capture what it printed.

    A non-zero exit code is not an error here; callers decide which codes
    they accept.

    Args:
        args: Executable followed by its arguments.
        timeout: Seconds before the tool is killed, None to wait forever.
        cwd: Working directory, the current one if None.

    Raises:
        subprocess.TimeoutExpired: The tool ran longer than timeout.
        FileNotFoundError: The executable does not exist.
    """
    logger.debug("Running %s", subprocess.list2cmdline(args))
    completed = subprocess.run(
        args,
        capture_output=True,
        text=True,
        encoding="utf-8",
        errors="replace",
        check=False,
        timeout=timeout,
        cwd=cwd,
    )
    if completed.returncode != 0:
        logger.debug("%s exited with %d", args[0], completed.returncode)
    return CommandResult(
        stdout=completed.stdout or "",
        stderr=completed.stderr or "",
        returncode=completed.returncode,
    )


def command_exists(name: str) -> bool:
    """Whether name resolves to an executable on PATH."""
    return shutil.which(name) is not None


def powershell_command(script: str) -> list[str]:
    """Arguments for running a PowerShell snippet without profile or prompts.

    Windows PowerShell is used on Windows, pwsh elsewhere.
    """
    shell = "powershell.exe" if os.name == "nt" else "pwsh"
    return [
        shell,
        "-NoProfile",
        "-NonInteractive",
        "-ExecutionPolicy",
        "Bypass",
        "-Command",
        script,
    ]
