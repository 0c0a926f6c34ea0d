"""Typer application and CLI entry point for spauth.

The command line is a thin shell over :func:`spauth.auth.get_auth`, meant for
scripts and for checking a credential configuration by hand:

- ``spauth header SITE_URL`` -- resolve credentials and print the headers.
- ``spauth methods`` -- list the registered auth methods and their fields.

:func:`main` is the console-script entry point declared in
``pyproject.toml``. Library errors become a one-line message on stderr and
the exit code carried by the :class:`~spauth.exceptions.SpauthError`.

See Also:
    :mod:`spauth.config`: ``SPAUTH_*`` settings read at start-up.
    :mod:`spauth.output`: Output formatting initialised in :func:`main_callback`.
"""

from __future__ import annotations

import asyncio
import signal
import sys
from typing import Any, Optional

import typer

from spauth import __version__
from spauth.exceptions import SpauthError
from spauth.exit_codes import EXIT_GENERIC_FAILURE


app = typer.Typer(
    name="spauth",
    help="Resolve SharePoint credentials into request headers.",
    no_args_is_help=True,
    add_completion=False,
    rich_markup_mode="rich",
)


def _version_callback(value: bool) -> None:
    """Print version and exit when --version is passed."""
    if value:
        typer.echo(f"spauth {__version__}")
        raise typer.Exit()


@app.callback()
def main_callback(
    version: bool = typer.Option(
        False,
        "--version",
        callback=_version_callback,
        is_eager=True,
        help="Show version and exit.",
    ),
    json_output: bool = typer.Option(
        False, "--json", help="JSON output format."
    ),
    no_color: bool = typer.Option(
        False, "--no-color", help="Disable color output."
    ),
    quiet: bool = typer.Option(
        False, "--quiet", "-q", help="Suppress non-essential output."
    ),
    verbose: bool = typer.Option(
        False, "--verbose", "-v", help="Enable debug output."
    ),
) -> None:
    """Root callback executed before every sub-command.

    Installs the global :class:`~spauth.output.OutputManager` from the CLI
    flags and routes ``spauth`` log records to stderr.
    """
    from spauth.output import OutputFormat, OutputManager, configure_logging, set_output

    fmt = OutputFormat.JSON if json_output else OutputFormat.AUTO
    set_output(
        OutputManager(format=fmt, no_color=no_color, quiet=quiet, verbose=verbose)
    )
    configure_logging(verbose)


@app.command("header")
def header_command(
    site_url: Optional[str] = typer.Argument(
        None, help="SharePoint site URL. Defaults to 'siteUrl' in the config file."
    ),
    config: Optional[str] = typer.Option(
        None,
        "--config",
        "-c",
        help="Credential descriptor file. Defaults to SPAUTH_CONFIG_PATH.",
    ),
) -> None:
    """Resolve credentials for SITE_URL and print the request headers.

    Plain output is one ``Name: value`` line per header, ready for
    ``curl -H``. With ``--json`` the full auth result is printed.

    Example::

        spauth header https://contoso.sharepoint.com/sites/dev -c private.json
    """
    from spauth.auth.factory import get_auth
    from spauth.output import OutputFormat, debug, error, get_output, print_data, print_json

    debug(f"Resolving credentials for {site_url or 'the siteUrl in the config file'}")
    try:
        result = asyncio.run(get_auth(site_url, None, config_path=config))
    except SpauthError as exc:
        error(str(exc))
        raise typer.Exit(code=exc.exit_code) from None

    if get_output().format == OutputFormat.JSON:
        print_json(result.to_dict())
    else:
        for name, value in result.headers.items():
            print_data(f"{name}: {value}")


@app.command("methods")
def methods_command() -> None:
    """List the registered auth methods and the fields each one needs.

    Optional fields are shown in brackets.
    """
    from spauth.auth.registry import default_registry
    from spauth.output import print_table

    rows = []
    for method in default_registry.list_methods():
        fields = ", ".join(
            f"[{field.key}]" if field.optional else field.key
            for field in method.required_fields
        )
        rows.append([method.id, method.name, method.description, fields])
    print_table(["id", "name", "description", "fields"], rows, title="Auth methods")


def _setup_signal_handlers() -> None:
    """Install a SIGINT handler so Ctrl-C exits cleanly."""

    def _handler(signum: int, frame: Any) -> None:  # noqa: ANN401
        sys.stderr.write("\nCancelled.\n")
        sys.exit(130)

    signal.signal(signal.SIGINT, _handler)


def main() -> None:
    """CLI entry point invoked by the ``spauth`` console script.

    Unhandled :class:`~spauth.exceptions.SpauthError` instances cause a
    clean exit with the error's ``exit_code``; anything else exits with
    :data:`~spauth.exit_codes.EXIT_GENERIC_FAILURE`.

    Raises:
        SystemExit: Always raised (either by Typer or explicitly).
    """
    _setup_signal_handlers()
    try:
        app()
    except SystemExit:
        raise
    except KeyboardInterrupt:
        sys.stderr.write("\nCancelled.\n")
        sys.exit(130)
    except Exception as exc:
        from spauth.output import error

        if isinstance(exc, SpauthError):
            error(str(exc))
            sys.exit(exc.exit_code)
        error(f"Unexpected error: {exc}")
        sys.exit(EXIT_GENERIC_FAILURE)
