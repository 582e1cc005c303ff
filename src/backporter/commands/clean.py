import click

from ..app import AppContext


@click.command()
@click.pass_obj
@click.option(
    "-y",
    "--yes",
    "yes",
    is_flag=True,
    default=False,
    help="Do not ask for confirmation.",
)
def clean(app: AppContext, yes: bool):
    """Delete the local mirror of the configured upstream repository.

    The mirror is cloned again on the next run.
    """
    project = app.project
    path = app.mirror.repo_path(project.owner, project.repo_name)

    if not app.mirror.local_mirror_exists(project.owner, project.repo_name):
        click.echo(f"No local mirror at {path}.")
        return

    if not yes and not click.confirm(f"Delete {path}?", default=False):
        click.echo("Aborted.")
        return

    app.mirror.delete_local_mirror(project.owner, project.repo_name)
    click.echo(f"Deleted {path}.")
