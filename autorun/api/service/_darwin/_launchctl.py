"""Parse launchctl query output."""

from dataclasses import dataclass


@dataclass(frozen=True)
class DomainEntry:
    """One line of the services block of `launchctl print <domain>`."""

    pid: int
    """Process ID, 0 if not running."""

    label: str


def parse_print_services(output: str) -> list[DomainEntry]:
    """Parse the "services = { ... }" block of `launchctl print <domain>`.

    Lines look like "  1234      0  com.example.foo"; lines whose first
    column is not a number are skipped.
    """
    entries: list[DomainEntry] = []
    in_services = False

    for line in output.splitlines():
        trimmed = line.strip()

        if not in_services:
            if trimmed == "services = {":
                in_services = True
            continue

        if trimmed == "}":
            break

        fields = line.split()
        if len(fields) < 3:
            continue
        try:
            pid = int(fields[0])
        except ValueError:
            continue
        entries.append(DomainEntry(pid=pid, label=fields[2]))

    return entries


def parse_print_disabled(output: str) -> dict[str, bool]:
    """Parse `launchctl print-disabled <domain>` into {label: disabled}.

    Lines look like: "com.example.foo" => disabled
    """
    result: dict[str, bool] = {}
    for raw in output.splitlines():
        line = raw.strip()
        if not line:
            continue
        parts = line.split("=>")
        if len(parts) != 2:
            continue
        label = parts[0].strip().strip('"')
        state = parts[1].strip().rstrip(",").strip()
        if not label:
            continue
        result[label] = state == "disabled"
    return result
