from __future__ import annotations

import typer

from geode_release.cli.commands.publish import publish


app = typer.Typer(
    add_completion=False,
    no_args_is_help=False,
    rich_markup_mode="rich",
)

app.command()(publish)


def main() -> None:
    app()
