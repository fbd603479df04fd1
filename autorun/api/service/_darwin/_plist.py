"""Render and read launchd property lists for ServiceConfig."""

import plistlib
from html import unescape
from pathlib import PurePosixPath

from markupsafe import escape

from ....templating import register_filter, render_template
from ..ServiceConfig import ServiceConfig

PLIST_SUFFIX = ".plist"

register_filter("xml", escape)

_PLIST_TEMPLATE = """<?xml version="1.0" encoding="UTF-8"?>
<!DOCTYPE plist PUBLIC "-//Apple//DTD PLIST 1.0//EN" "http://www.apple.com/DTDs/PropertyList-1.0.dtd">
<plist version="1.0">
<dict>
	<key>Label</key>
	<string>{{ c.name | xml }}</string>
{% if c.arguments %}
	<key>ProgramArguments</key>
	<array>
		<string>{{ c.program | xml }}</string>
{% for arg in c.arguments %}
		<string>{{ arg | xml }}</string>
{% endfor %}
	</array>
{% else %}
	<key>Program</key>
	<string>{{ c.program | xml }}</string>
{% endif %}
{% if c.working_directory %}
	<key>WorkingDirectory</key>
	<string>{{ c.working_directory | xml }}</string>
{% endif %}
{% if c.environment %}
	<key>EnvironmentVariables</key>
	<dict>
{% for key, value in c.environment.items() %}
		<key>{{ key | xml }}</key>
		<string>{{ value | xml }}</string>
{% endfor %}
	</dict>
{% endif %}
	<key>RunAtLoad</key>
	<{{ 'true' if c.run_at_load else 'false' }}/>
{% if c.keep_alive %}
	<key>KeepAlive</key>
	<true/>
{% endif %}
{% if c.standard_out_path %}
	<key>StandardOutPath</key>
	<string>{{ c.standard_out_path | xml }}</string>
{% endif %}
{% if c.standard_error_path %}
	<key>StandardErrorPath</key>
	<string>{{ c.standard_error_path | xml }}</string>
{% endif %}
</dict>
</plist>
"""


def render_plist(config: ServiceConfig) -> str:
    """Create the XML plist content for a service configuration."""
    return render_template(_PLIST_TEMPLATE, {"c": config})


def plist_to_config(data: bytes) -> ServiceConfig:
    """Rebuild the ServiceConfig a plist document was rendered from."""
    doc = plistlib.loads(data)
    words = list(doc.get("ProgramArguments") or [])
    program = doc.get("Program") or (words[0] if words else "")
    return ServiceConfig(
        name=doc.get("Label", ""),
        program=program,
        arguments=words[1:],
        working_directory=doc.get("WorkingDirectory"),
        environment=dict(doc.get("EnvironmentVariables") or {}),
        run_at_load=bool(doc.get("RunAtLoad", False)),
        keep_alive=bool(doc.get("KeepAlive", False)),
        standard_out_path=doc.get("StandardOutPath"),
        standard_error_path=doc.get("StandardErrorPath"),
    )


def _string_after(content: str, key_tag: str) -> str:
    idx = content.find(key_tag)
    if idx == -1:
        return ""
    rest = content[idx:]
    start = rest.find("<string>")
    if start == -1:
        return ""
    rest = rest[start + len("<string>") :]
    end = rest.find("</string>")
    return rest[:end] if end != -1 else ""


def extract_program_name(content: str) -> str:
    """Return the executable's file name from normalized plist XML, or "".

    Looks at the Program key first, then the first ProgramArguments element.
    """
    path = _string_after(content, "<key>Program</key>") or _string_after(content, "<key>ProgramArguments</key>")
    if not path:
        return ""
    return PurePosixPath(unescape(path)).name
