"""annostore serve: run the annotation HTTP server."""

from __future__ import annotations

import sys

import click


@click.command()
@click.option("--config", "config_file", type=click.Path(dir_okay=False), help="YAML or JSON config file.")
@click.option("--storage", help='Storage config, format is "type:options" (local:<path> or rethinkdb:<host:port>/<db>).')
@click.option("--listen-addr", help="Address to listen on, e.g. :9119 or 127.0.0.1:9119.")
@click.option("--endpoint", help="Path under which to expose the annotation server.")
@click.option("--metrics-endpoint", help="Path under which to expose Prometheus metrics.")
@click.option("--log-level", help="DEBUG, INFO, WARNING or ERROR.")
def serve(config_file, storage, listen_addr, endpoint, metrics_endpoint, log_level) -> None:
    """Serve annotations over HTTP."""
    import uvicorn

    from annostore import __version__
    from annostore.core.cli.common import load_config, open_store_or_exit
    from annostore.core.exceptions import ConfigurationError
    from annostore.core.utils.logging import setup_logging
    from annostore.server import create_app

    click.echo(f"annostore version {__version__}")
    try:
        config = load_config(
            config_file,
            {
                "storage": storage,
                "server.listen_addr": listen_addr,
                "server.endpoint": endpoint,
                "server.metrics_endpoint": metrics_endpoint,
                "logging.level": log_level,
            },
        )
        settings = config.validated()
    except ConfigurationError as e:
        click.echo(f"config borked, err: {e}", err=True)
        sys.exit(1)

    setup_logging(level=settings.logging.level, log_file=settings.logging.file)

    store = open_store_or_exit(settings.storage)
    try:
        app = create_app(store, settings.server)
        click.echo(f"Running server listening at {settings.server.listen_addr}")
        uvicorn.run(app, host=settings.server.host, port=settings.server.port, log_config=None, log_level="warning")
    finally:
        store.close()
        click.echo("Exiting")
