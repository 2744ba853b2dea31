"""annostore stats: print per-tag annotation counts."""

from __future__ import annotations

import click


@click.command()
@click.option("--config", "config_file", type=click.Path(dir_okay=False), help="YAML or JSON config file.")
@click.option("--storage", help='Storage config, format is "type:options".')
def stats(config_file, storage) -> None:
    """Show how many annotations each tag holds."""
    from annostore.core.cli.common import load_config, open_store_or_exit
    from annostore.core.exceptions import AnnostoreError

    try:
        config = load_config(config_file, {"storage": storage})
    except AnnostoreError as e:
        raise click.ClickException(str(e)) from e

    store = open_store_or_exit(config.get("storage"))
    try:
        counts = store.tag_stats()
    except AnnostoreError as e:
        raise click.ClickException(f"stats err: {e}") from e
    finally:
        store.close()

    if not counts:
        click.echo("No annotations stored.")
        return
    for tag, count in sorted(counts.items()):
        click.echo(f"{tag}\t{count}")
