"""Ordered fallback attempts for launchctl operations.

launchctl has no single reliable start or stop command across macOS
releases, so each operation is an ordered list of attempts. Every attempt
decides from the outcomes of the earlier ones whether it runs at all, and
the chain's success is decided from all outcomes at the end.
"""

import logging
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field

from .._run import CommandResult

logger = logging.getLogger(__name__)

Outcomes = Mapping[str, bool]


def always(_outcomes: Outcomes) -> bool:
    return True


@dataclass(frozen=True)
class Attempt:
    """One step of a fallback chain."""

    name: str
    args: list[str]
    when: Callable[[Outcomes], bool] = always
    """Runs only if this returns True for the outcomes so far."""
    ends_chain_on_success: bool = False
    succeeded: Callable[[CommandResult], bool] = lambda result: result.ok


@dataclass
class ChainResult:
    """What happened when a chain ran."""

    outcomes: dict[str, bool] = field(default_factory=dict)
    results: list[CommandResult] = field(default_factory=list)

    def failure_detail(self) -> str:
        return "; ".join(r.describe() for r in self.results if not r.ok)


def run_attempts(attempts: list[Attempt], runner: Callable[..., CommandResult]) -> ChainResult:
    """Evaluate attempts in order and record each outcome by name.

    Skipped attempts have no outcome.
    """
    chain = ChainResult()
    for attempt in attempts:
        if not attempt.when(chain.outcomes):
            logger.debug("skipping %s", attempt.name)
            continue
        logger.debug("attempting %s: %s", attempt.name, attempt.args)
        result = runner(attempt.args)
        ok = attempt.succeeded(result)
        chain.outcomes[attempt.name] = ok
        chain.results.append(result)
        if not ok:
            logger.debug("%s failed: %s", attempt.name, result.describe())
        elif attempt.ends_chain_on_success:
            break
    return chain


def start_attempts(domain: str, label: str, plist_path: str) -> list[Attempt]:
    """bootstrap, kickstart -k, then legacy load plus a best-effort kickstart."""
    target = f"{domain}/{label}"
    return [
        Attempt("bootstrap", ["launchctl", "bootstrap", domain, plist_path]),
        Attempt("kickstart", ["launchctl", "kickstart", "-k", target]),
        Attempt(
            "load",
            ["launchctl", "load", plist_path],
            when=lambda o: not o["kickstart"] and not o["bootstrap"],
        ),
        Attempt("kickstart-after-load", ["launchctl", "kickstart", target], when=lambda o: o.get("load", False)),
    ]


def start_succeeded(outcomes: Outcomes) -> bool:
    """Start fails only when every applicable branch failed.

    A failed kickstart after a successful bootstrap still counts: bootstrap
    launches RunAtLoad jobs itself. The final kickstart is best effort.
    """
    return any(outcomes.get(step, False) for step in ("bootstrap", "kickstart", "load"))


def _bootout_ok(result: CommandResult) -> bool:
    # Exit status 3 / "No such process": the job was not loaded, i.e. already stopped.
    return result.ok or result.returncode == 3 or "No such process" in result.output


def stop_attempts(domain: str, label: str, plist_path: str | None) -> list[Attempt]:
    """bootout, SIGTERM via launchctl kill, then legacy unload."""
    target = f"{domain}/{label}"
    attempts = []
    if plist_path:
        attempts.append(
            Attempt("bootout", ["launchctl", "bootout", target], ends_chain_on_success=True, succeeded=_bootout_ok)
        )
    attempts.append(Attempt("kill", ["launchctl", "kill", "SIGTERM", target], ends_chain_on_success=True))
    if plist_path:
        attempts.append(Attempt("unload", ["launchctl", "unload", plist_path]))
    return attempts


def stop_succeeded(outcomes: Outcomes) -> bool:
    return any(outcomes.values())
