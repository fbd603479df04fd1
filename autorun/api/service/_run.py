"""Run a native command and capture its output."""

import logging
import subprocess
from dataclasses import dataclass, field

logger = logging.getLogger(__name__)


@dataclass
class CommandResult:
    """Outcome of one native command invocation."""

    args: list[str]
    returncode: int
    output: str = ""
    """Combined stdout+stderr, or stdout only when stderr was kept apart."""
    stderr: str = field(default="", repr=False)

    @property
    def ok(self) -> bool:
        return self.returncode == 0

    def describe(self) -> str:
        """One-line diagnostic: the command, its exit status and its output."""
        detail = (self.output or self.stderr).strip()
        text = f"{' '.join(self.args)} exited with status {self.returncode}"
        return f"{text}: {detail}" if detail else text


def run_command(args: list[str], *, merge_stderr: bool = True) -> CommandResult:
    """Run args to completion.

    Never raises for a non-zero exit; a command that cannot be spawned is
    reported with returncode 127 and the OS error as output.

    Args:
        args: Command and arguments
        merge_stderr: Capture stderr into output (diagnostics) instead of
            keeping it apart (queries whose stdout is parsed)
    """
    logger.debug("executing %s", args)
    try:
        proc = subprocess.run(
            args,
            stdout=subprocess.PIPE,
            stderr=subprocess.STDOUT if merge_stderr else subprocess.PIPE,
            text=True,
            check=False,
        )
    except OSError as e:
        logger.error("failed to spawn %s: %s", args[0], e)
        return CommandResult(list(args), 127, str(e))

    result = CommandResult(list(args), proc.returncode, proc.stdout or "", proc.stderr or "")
    if not result.ok:
        logger.debug("command failed: %s", result.describe())
    return result
