import click
import logging
import yaml
from typing import Optional

from .app import AppContext
from .errors import HandledError
from .utils.output import echo_handled_error
from .version import __version__

LOG_FORMAT = "[%(levelname)s] %(message)s"

from dotenv import load_dotenv

load_dotenv()


def register_commands(cli):
    from .commands.run import run

    cli.add_command(run)

    from .commands.clean import clean

    cli.add_command(clean)


class BackporterGroup(click.Group):
    """Reports operator-facing failures as a plain message and exit status 1."""

    def invoke(self, ctx: click.Context):
        try:
            return super().invoke(ctx)
        except HandledError as e:
            echo_handled_error(e.message)
            ctx.exit(1)


@click.group(cls=BackporterGroup)
@click.version_option(__version__, prog_name="backporter")
@click.pass_obj
@click.option(
    "--config",
    "config_path",
    type=click.Path(dir_okay=False),
    default=None,
    help="Path to the project config file (default: .backportrc.yaml).",
)
@click.option(
    "-v",
    "--verbose",
    "verbose",
    is_flag=True,
    default=False,
    help="Log git commands and GitHub API calls.",
)
def cli(app: AppContext, config_path: Optional[str], verbose: bool):
    if verbose:
        logging.getLogger().setLevel(logging.DEBUG)

    try:
        app.load_config(config_path)
    except (FileNotFoundError, ValueError, yaml.YAMLError) as e:
        raise click.ClickException(str(e))


def main():
    logging.basicConfig(
        level=logging.INFO,
        format=LOG_FORMAT,
    )
    register_commands(cli)
    cli(obj=AppContext())


if __name__ == "__main__":
    main()
