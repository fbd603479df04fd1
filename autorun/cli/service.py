"""Service Typer app factory."""

import typer

from ..api.service.cmd_action import cmd_action
from ..api.service.cmd_create import cmd_create
from ..api.service.cmd_delete import cmd_delete
from ..api.service.cmd_list import cmd_list
from ..api.service.cmd_platform import cmd_platform
from ..api.service.cmd_show import cmd_show
from ..api.service.ServiceConfig import ServiceConfig
from ._handle_stage_result import _handle_stage_result
from ._stream_logs import _stream_logs

SCOPE_HELP = "Scope: user or system"


def _parse_env(pairs: list[str]) -> dict[str, str]:
    env: dict[str, str] = {}
    for pair in pairs:
        key, sep, value = pair.partition("=")
        if not sep or not key:
            raise typer.BadParameter(f"expected KEY=VALUE, got {pair!r}", param_hint="--env")
        env[key] = value
    return env


def service() -> typer.Typer:
    """Create and configure the service Typer app."""
    app = typer.Typer(
        name="service",
        help="List, control, create and delete system services",
        pretty_exceptions_show_locals=False,
        pretty_exceptions_enable=False,
        context_settings={"help_option_names": ["-h", "--help"]},
        invoke_without_command=True,
    )

    @app.callback(invoke_without_command=True)
    def callback(ctx: typer.Context) -> None:
        """Service operations - shows available commands."""
        if ctx.invoked_subcommand is None:
            typer.echo(ctx.get_help(), err=True)
            raise typer.Exit()

    @app.command(name="list")
    def list_cmd(
        scope: str = typer.Option("all", "--scope", "-s", help="Scope: user, system or all"),
    ) -> None:
        """List services."""
        _handle_stage_result(cmd_list)(scope)

    @app.command(name="show")
    def show_cmd(
        name: str = typer.Argument(..., help="Service name"),
        scope: str = typer.Option("user", "--scope", "-s", help=SCOPE_HELP),
    ) -> None:
        """Show one service."""
        _handle_stage_result(cmd_show)(name, scope)

    def _register_action(action: str, summary: str) -> None:
        def action_cmd(
            name: str = typer.Argument(..., help="Service name"),
            scope: str = typer.Option("user", "--scope", "-s", help=SCOPE_HELP),
        ) -> None:
            _handle_stage_result(cmd_action)(action, name, scope)

        action_cmd.__doc__ = summary
        app.command(name=action)(action_cmd)

    _register_action("start", "Start a service.")
    _register_action("stop", "Stop a service.")
    _register_action("restart", "Restart a service.")
    _register_action("enable", "Enable a service at boot or login.")
    _register_action("disable", "Disable automatic start of a service.")

    @app.command(name="create")
    def create_cmd(
        name: str = typer.Argument(..., help="Service name (launchd label or systemd unit name)"),
        program: str = typer.Option(..., "--program", "-p", help="Absolute path of the executable"),
        arg: list[str] = typer.Option([], "--arg", "-a", help="Program argument (repeatable)"),  # noqa: B008
        env: list[str] = typer.Option([], "--env", "-e", help="KEY=VALUE environment variable (repeatable)"),  # noqa: B008
        workdir: str | None = typer.Option(None, "--workdir", "-w", help="Working directory"),
        run_at_load: bool = typer.Option(False, "--run-at-load", help="Enable and start right away"),
        keep_alive: bool = typer.Option(False, "--keep-alive", help="Restart the process when it exits"),
        stdout_path: str | None = typer.Option(None, "--stdout", help="File receiving stdout"),
        stderr_path: str | None = typer.Option(None, "--stderr", help="File receiving stderr"),
        description: str | None = typer.Option(None, "--description", help="Free-text description"),
        scope: str = typer.Option("user", "--scope", "-s", help=SCOPE_HELP),
    ) -> None:
        """Create a service."""
        config = ServiceConfig(
            name=name,
            program=program,
            arguments=list(arg),
            working_directory=workdir,
            environment=_parse_env(env),
            run_at_load=run_at_load,
            keep_alive=keep_alive,
            standard_out_path=stdout_path,
            standard_error_path=stderr_path,
            description=description,
        )
        _handle_stage_result(cmd_create)(config, scope)

    @app.command(name="delete")
    def delete_cmd(
        name: str = typer.Argument(..., help="Service name"),
        scope: str = typer.Option("user", "--scope", "-s", help=SCOPE_HELP),
    ) -> None:
        """Stop, disable and delete a service."""
        _handle_stage_result(cmd_delete)(name, scope)

    @app.command(name="logs")
    def logs_cmd(
        name: str = typer.Argument(..., help="Service name"),
        scope: str = typer.Option("user", "--scope", "-s", help=SCOPE_HELP),
        lines_limit: int = typer.Option(0, "--lines-limit", "-n", min=0, help="Stop after this many lines (0: follow)"),
    ) -> None:
        """Follow a service's logs until Ctrl-C."""
        raise typer.Exit(_stream_logs(name, scope, lines_limit))

    @app.command(name="platform")
    def platform_cmd() -> None:
        """Show the detected service manager."""
        _handle_stage_result(cmd_platform)()

    return app
