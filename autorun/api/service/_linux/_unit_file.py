"""Render and parse systemd unit files for ServiceConfig."""

from ....templating import render_template
from ..errors import ServiceValidationError
from ..ServiceConfig import ServiceConfig

UNIT_SUFFIX = ".service"

# systemd ignores keys starting with "X-"; this one records run_at_load so the
# unit file alone describes the service it was created from.
RUN_AT_LOAD_KEY = "X-Autorun-RunAtLoad"

_QUOTE_TRIGGERS = set("\"'\\")

_ESCAPE = {"\\": "\\\\", '"': '\\"', "\n": "\\n", "\t": "\\t", "\r": "\\r"}
_UNESCAPE = {"n": "\n", "t": "\t", "r": "\r", "a": "\a", "b": "\b", "f": "\f", "v": "\v", "s": " "}

_UNIT_TEMPLATE = """[Unit]
Description={{ description }}
After=network.target
{{ run_at_load_key }}={{ 'yes' if run_at_load else 'no' }}

[Service]
Type=simple
ExecStart={{ exec_start }}
{% if working_directory %}
WorkingDirectory={{ working_directory }}
{% endif %}
{% for line in environment %}
Environment={{ line }}
{% endfor %}
{% if keep_alive %}
Restart=always
RestartSec=5
{% endif %}
{% if standard_out_path %}
StandardOutput=file:{{ standard_out_path }}
{% endif %}
{% if standard_error_path %}
StandardError=file:{{ standard_error_path }}
{% endif %}

[Install]
WantedBy=default.target
"""


def unit_name(name: str) -> str:
    """Fully-qualified unit name for a logical name."""
    return name if name.endswith(UNIT_SUFFIX) else name + UNIT_SUFFIX


def logical_name(unit: str) -> str:
    """Logical name for a fully-qualified unit name."""
    return unit[: -len(UNIT_SUFFIX)] if unit.endswith(UNIT_SUFFIX) else unit


def _is_control(c: str) -> bool:
    return c < " " or c == "\x7f"


def _c_escape(text: str) -> str:
    out = []
    for c in text:
        if c in _ESCAPE:
            out.append(_ESCAPE[c])
        elif _is_control(c):
            out.append(f"\\x{ord(c):02x}")
        else:
            out.append(c)
    return "".join(out)


def _quote_word(word: str) -> str:
    word = word.replace("%", "%%").replace("$", "$$")
    if word == ";":
        # A bare ";" separates commands in ExecStart
        return "\\;"
    if word and not any(c.isspace() or c in _QUOTE_TRIGGERS or _is_control(c) for c in word):
        return word
    return '"' + _c_escape(word) + '"'


def _quote_env(key: str, value: str) -> str:
    return '"' + _c_escape(f"{key}={value}".replace("%", "%%")) + '"'


def check_unit_fields(config: ServiceConfig) -> None:
    """Reject values that would spill over their unit file line.

    Words in ExecStart and Environment are escaped; these fields are not.

    Raises:
        ServiceValidationError: If a single-line field holds a line break
    """
    fields = {
        "name": config.name,
        "description": config.description,
        "working_directory": config.working_directory,
        "standard_out_path": config.standard_out_path,
        "standard_error_path": config.standard_error_path,
    }
    for field, value in fields.items():
        if value and ("\n" in value or "\r" in value):
            raise ServiceValidationError(f"{field} must not contain line breaks: {value!r}")


def render_unit_file(config: ServiceConfig) -> str:
    """Create systemd unit file content for a service configuration.

    Raises:
        ServiceValidationError: If a single-line field holds a line break
    """
    check_unit_fields(config)
    exec_start = " ".join(_quote_word(word) for word in [config.program, *config.arguments])
    return render_template(
        _UNIT_TEMPLATE,
        {
            "description": config.description or f"{config.name} service",
            "run_at_load_key": RUN_AT_LOAD_KEY,
            "run_at_load": config.run_at_load,
            "exec_start": exec_start,
            "working_directory": config.working_directory,
            "environment": [_quote_env(k, v) for k, v in config.environment.items()],
            "keep_alive": config.keep_alive,
            "standard_out_path": config.standard_out_path,
            "standard_error_path": config.standard_error_path,
        },
    )


def parse_unit_file(text: str) -> dict[str, dict[str, list[str]]]:
    """Parse unit file text into {section: {key: [values...]}}.

    Repeated keys (Environment=) keep every value in order.
    """
    sections: dict[str, dict[str, list[str]]] = {}
    current: dict[str, list[str]] | None = None
    for raw in text.splitlines():
        line = raw.strip()
        if not line or line[0] in "#;":
            continue
        if line.startswith("[") and line.endswith("]"):
            current = sections.setdefault(line[1:-1], {})
            continue
        if current is None or "=" not in line:
            continue
        key, value = line.split("=", 1)
        current.setdefault(key.strip(), []).append(value.strip())
    return sections


def split_words(value: str) -> list[str]:
    """Split a unit file value into words the way systemd does.

    Handles single and double quotes and C escapes (\\n, \\t, \\xHH, ...).

    Raises:
        ValueError: If a quote is not closed
    """
    words: list[str] = []
    i, n = 0, len(value)
    while i < n:
        if value[i].isspace():
            i += 1
            continue
        word: list[str] = []
        quote = None
        while i < n:
            c = value[i]
            if quote is None and c.isspace():
                break
            if c == "\\" and i + 1 < n:
                nxt = value[i + 1]
                if nxt == "x" and i + 3 < n:
                    word.append(chr(int(value[i + 2 : i + 4], 16)))
                    i += 4
                    continue
                word.append(_UNESCAPE.get(nxt, nxt))
                i += 2
                continue
            if quote is None and c in "\"'":
                quote = c
            elif c == quote:
                quote = None
            else:
                word.append(c)
            i += 1
        if quote is not None:
            raise ValueError(f"unterminated quote in {value!r}")
        words.append("".join(word))
    return words


def _unescape(word: str) -> str:
    return word.replace("%%", "%")


def _first(section: dict[str, list[str]], key: str) -> str | None:
    values = section.get(key)
    return values[-1] if values else None


def _strip_output(value: str | None) -> str | None:
    if value is None:
        return None
    for prefix in ("file:", "append:", "truncate:"):
        if value.startswith(prefix):
            return value[len(prefix) :]
    return value


def unit_file_to_config(name: str, text: str) -> ServiceConfig:
    """Rebuild the ServiceConfig a unit file was rendered from."""
    sections = parse_unit_file(text)
    unit = sections.get("Unit", {})
    service = sections.get("Service", {})

    words = [_unescape(w).replace("$$", "$") for w in split_words(_first(service, "ExecStart") or "")]
    environment: dict[str, str] = {}
    for entry in service.get("Environment", []):
        for pair in split_words(entry):
            key, _, value = _unescape(pair).partition("=")
            environment[key] = value

    return ServiceConfig(
        name=logical_name(name),
        program=words[0] if words else "",
        arguments=words[1:],
        working_directory=_first(service, "WorkingDirectory"),
        environment=environment,
        run_at_load=(_first(unit, RUN_AT_LOAD_KEY) or "no") == "yes",
        keep_alive=_first(service, "Restart") == "always",
        standard_out_path=_strip_output(_first(service, "StandardOutput")),
        standard_error_path=_strip_output(_first(service, "StandardError")),
        description=_first(unit, "Description"),
    )
