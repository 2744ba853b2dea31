"""annostore CLI: entry point for the serve and stats commands."""

import click

from annostore import __version__


@click.group()
@click.version_option(version=__version__, package_name="annostore")
def main() -> None:
    """annostore: tagged annotations for time-series dashboards."""


from .serve_cmd import serve
from .stats_cmd import stats

main.add_command(serve)
main.add_command(stats)
