import logging

import typer

from csbuild.cli.config_cmd import config as config_command
from csbuild.cli.make import make as make_command
from csbuild.cli.render import abort
from csbuild.engine.errors import InvalidCommand

app = typer.Typer(name="cs-build", help="Gate, test and build a client/server repository pair")
app.command(name="make")(make_command)
app.command(name="config")(config_command)


@app.callback(invoke_without_command=True)
def main(
    ctx: typer.Context,
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log every command and gate transition"),
) -> None:
    if verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(levelname)s %(name)s: %(message)s")
    if ctx.invoked_subcommand is None:
        typer.echo(ctx.get_help())
        abort(InvalidCommand("Invalid command. Type `cs-build --help` to display valid arguments for this application."))


if __name__ == "__main__":
    app()
