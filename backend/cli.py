#!/usr/bin/env python3
"""
CLI for the RPC service

Commands:
    serve   - Run the service with Flask's dev server
    docs    - Print the Swagger document (JSON or YAML)
    routes  - List registered APIs with their paths

Usage:
    python cli.py serve --port 8080
    python cli.py docs --format yaml --output swagger.yaml
    python cli.py routes
"""

import logging
import sys

import click

from config import Config, ServiceConf


def _load_registry():
    from api.contracts import register_api_sets
    from api.contracts.schemas import API_SETS
    return register_api_sets(API_SETS)


@click.group()
@click.version_option(version="1.0.0", prog_name="easyapi")
def cli():
    """Declarative RPC service CLI."""
    logging.basicConfig(
        level=Config.LOG_LEVEL,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


@cli.command("serve")
@click.option("--host", default=None, help="Bind host (default: from LISTEN_ADDR)")
@click.option("--port", default=None, type=int, help="Bind port (default: from LISTEN_ADDR)")
def serve(host, port):
    """Run the service."""
    from app import create_app

    conf = ServiceConf.from_env()
    app = create_app(conf=conf)
    app.run(
        debug=Config.DEBUG,
        host=host or conf.listen_host,
        port=port or conf.listen_port,
    )


@cli.command("docs")
@click.option("--format", "fmt", type=click.Choice(["json", "yaml"]), default="json",
              show_default=True, help="Output format")
@click.option("--output", "-o", type=click.Path(dir_okay=False, writable=True),
              default=None, help="Write to FILE instead of stdout")
def docs(fmt, output):
    """Print the Swagger 2.0 document."""
    from api.docs import generate_docs

    result = generate_docs(_load_registry(), ServiceConf.from_env())
    text = result.get_document_json() if fmt == "json" else result.get_document_yaml()

    for warning in result.warnings:
        click.secho(f"warning: {warning}", fg="yellow", err=True)

    if output:
        with open(output, "w", encoding="utf-8") as f:
            f.write(text)
        click.echo(f"Wrote {fmt} document to {output}", err=True)
    else:
        click.echo(text, nl=False)

    if result.is_empty:
        sys.exit(1)


@cli.command("routes")
def routes():
    """List registered APIs."""
    conf = ServiceConf.from_env()
    registry = _load_registry()

    for contract in registry:
        set_name = registry.set_name_for(contract.api_id)
        click.echo(
            f"POST {conf.api_path(contract.api_id):<40} "
            f"{set_name:<16} {contract.summary}"
        )


if __name__ == "__main__":
    cli()
