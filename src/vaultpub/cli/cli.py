"""CLI entrypoint: Typer app definition and command registration"""

from typing import Annotated

import typer

from vaultpub._logging import configure_logging
from vaultpub.cli.commands import draft_cmd, parse_cmd, publish_cmd, rebuild_cmd


app = typer.Typer(name="vaultpub", no_args_is_help=True, help="Markdown vault to AST export pipeline")


@app.callback()
def main(
    verbose: Annotated[bool, typer.Option("--verbose", "-v", help="Enable debug logging")] = False,
    ):
    configure_logging("DEBUG" if verbose else None)


app.command(name="rebuild")(rebuild_cmd)
app.command(name="publish")(publish_cmd)
app.command(name="draft")(draft_cmd)
app.command(name="parse")(parse_cmd)
