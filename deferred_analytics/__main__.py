import ast
import logging
from importlib.metadata import PackageNotFoundError, version
from pathlib import Path
from typing import Annotated, Optional, cast

import rich
import rich.box
import typer
from rich.markup import escape
from rich.table import Table

from deferred_analytics.analytics import (
    AnalyticsAppConfig,
    AnalyticsSettings,
    DeferredAnalytics,
)
from deferred_analytics.analytics.adapter import backend_names
from deferred_analytics.typing import Params

app = typer.Typer(
    name="Deferred Analytics CLI",
    add_completion=True,
    pretty_exceptions_show_locals=False,
)
emit_app = typer.Typer(help="Send a single hit through a backend.")
app.add_typer(emit_app, name="emit")

# Backends that need an optional extra, mapped to the module they import.
OPTIONAL_BACKENDS = {"posthog": "posthog"}

PropertyOption = Annotated[
    Optional[list[str]],
    typer.Option(
        "--property",
        "-p",
        help="Hit property in the form KEY=VALUE. Can be repeated.",
    ),
]
BackendOption = Annotated[
    str,
    typer.Option("--backend", "-b", help="Backend to send the hit to."),
]
ConfigOption = Annotated[
    Optional[Path],
    typer.Option(
        "--config",
        "-c",
        help="YAML config with an `app.analytics` section. "
        "Takes precedence over `--backend`.",
        exists=True,
        dir_okay=False,
    ),
]
UserOption = Annotated[
    Optional[str],
    typer.Option(
        "--user",
        "-u",
        help="Hold the hit back until this user reference is "
        "identified.",
    ),
]


def version_callback(value: bool) -> None:
    if value:
        try:
            typer.echo(f"DeferredAnalytics: {version('deferred-analytics')}")
        except PackageNotFoundError:
            from deferred_analytics import __version__

            typer.echo(f"DeferredAnalytics: {__version__}")
        raise typer.Exit


@app.callback()
def main(
    _: bool = typer.Option(
        None,
        "--version",
        callback=version_callback,
        is_eager=True,
        help="Show version and exit.",
    ),
):
    return


@app.command()
def checkhealth():
    """Check which analytics backends can be used."""
    table = Table(
        title="Health Check",
        box=rich.box.ROUNDED,
    )
    table.add_column("Backend", header_style="magenta i")
    table.add_column("Status", header_style="magenta i")
    table.add_column("Error", header_style="magenta i", max_width=50)
    for name in backend_names():
        error_message = ""
        try:
            if name in OPTIONAL_BACKENDS:
                __import__(OPTIONAL_BACKENDS[name])
            status = "✅"
            style = "green"
        except ImportError as e:
            status = "❌"
            style = "red"
            error_message = escape(str(e.args[0]))

        table.add_row(name, status, error_message, style=style)

    console = rich.console.Console()
    console.print(table)


@emit_app.command()
def pageview(
    uri: Annotated[str, typer.Argument(help="URI of the viewed page.")],
    properties: PropertyOption = None,
    backend: BackendOption = "stdout",
    config: ConfigOption = None,
    user: UserOption = None,
):
    """Sends a page view."""
    analytics = _build_analytics(backend, config, user)
    analytics.capture.record_pageview(uri, _parse_properties(properties))
    _release(analytics, user)


@emit_app.command()
def event(
    name: Annotated[str, typer.Argument(help="Name of the event.")],
    properties: PropertyOption = None,
    backend: BackendOption = "stdout",
    config: ConfigOption = None,
    user: UserOption = None,
):
    """Sends an event."""
    analytics = _build_analytics(backend, config, user)
    analytics.capture.record_event(name, _parse_properties(properties))
    _release(analytics, user)


def _build_analytics(
    backend: str, config: Optional[Path], user: Optional[str]
) -> DeferredAnalytics:
    if config is not None:
        settings = AnalyticsAppConfig.get_config(config).get("app.analytics")
        if settings is None:
            raise typer.BadParameter(
                "Config has no `app.analytics` section.",
                param_hint="--config",
            )
    else:
        if backend.lower() not in backend_names():
            raise typer.BadParameter(
                f"Unknown backend '{backend}'. "
                f"Choose from {', '.join(backend_names())}.",
                param_hint="--backend",
            )
        settings = AnalyticsSettings(backend=backend)

    if settings.backend.lower() == "stdout":
        logging.basicConfig(level=logging.INFO, format="%(message)s")

    return cast(
        DeferredAnalytics,
        DeferredAnalytics.from_settings(
            settings.model_copy(
                update={"defer_until_identified": user is not None}
            )
        ),
    )


def _release(analytics: DeferredAnalytics, user: Optional[str]) -> None:
    if user is not None:
        typer.echo(
            f"Holding {analytics.capture.pending} hit(s) until "
            "the user is identified."
        )
        user_id = analytics.identify(user)
        typer.echo(f"Identified user as {user_id}.")
    analytics.shutdown()
    typer.echo("Sent.")


def _parse_properties(properties: Optional[list[str]]) -> Params:
    output: Params = {}
    for item in properties or []:
        key, sep, raw = item.partition("=")
        if not sep or not key:
            raise typer.BadParameter(
                f"Expected KEY=VALUE, got '{item}'.", param_hint="--property"
            )
        try:
            output[key] = ast.literal_eval(raw)
        except (ValueError, SyntaxError):
            output[key] = raw
    return output


if __name__ == "__main__":
    app()
