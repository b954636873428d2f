"""
stagerunner CLI - Run ordered stages with a live checklist.

Commands:
    stagerunner run      Run the example pipeline
    stagerunner stages   List the example pipeline's stages
"""

import click

from .run import run, stages


@click.group()
@click.version_option(package_name="stagerunner")
def main():
    """stagerunner - Sequential stage runner with a live terminal checklist."""
    pass


main.add_command(run)
main.add_command(stages)


__all__ = ["main"]
