"""Command line interface for feed_normalizer.

``feed-normalizer parse SOURCE`` prints a feed as JSON; ``feed-normalizer
serve`` runs the MCP server.
"""

import asyncio
import json
import logging
import sys

import click

from feed_normalizer.config import load_config, set_config
from feed_normalizer.exceptions import FeedParseError
from feed_normalizer.logging_config import setup_logging
from feed_normalizer.server.app import TRANSPORTS, create_mcp_server, run_server
from feed_normalizer.services.feed_parser import parse_feed, parse_feed_file
from feed_normalizer.services.fetcher import fetch_feed


logger = logging.getLogger(__name__)


@click.group()
@click.option(
    "--config",
    "config_path",
    type=click.Path(exists=True, dir_okay=False),
    default=None,
    help="YAML config file (defaults to $FEED_NORMALIZER_CONFIG)",
)
@click.option("--log-level", default=None, help="Override the configured log level")
@click.pass_context
def main(ctx: click.Context, config_path, log_level) -> None:
    """Normalize RSS and Atom feeds into one unified shape."""
    config = load_config(config_path)
    if log_level:
        config.log_level = log_level
    set_config(config)
    setup_logging(config)
    ctx.obj = config


@main.command()
@click.argument("source")
@click.option("--indent", default=2, show_default=True, help="JSON indentation")
@click.option("--max-items", default=0, help="Print at most this many items (0 prints all)")
@click.pass_obj
def parse(config, source: str, indent: int, max_items: int) -> None:
    """Parse SOURCE and print it as JSON.

    SOURCE is a file path, an http(s) URL, or - for stdin.
    """
    try:
        if source.startswith(("http://", "https://")):
            feed = asyncio.run(fetch_feed(source, config))
        elif source == "-":
            feed = parse_feed(click.get_binary_stream("stdin"))
        else:
            feed = parse_feed_file(source)
    except FeedParseError as e:
        raise click.ClickException(str(e))

    data = feed.to_dict()
    if max_items > 0:
        data["items"] = data["items"][:max_items]
    click.echo(json.dumps(data, indent=indent or None, ensure_ascii=False))


@main.command()
@click.option(
    "--port",
    default=3001,
    help="Port to listen on for SSE or Streamable HTTP transport"
)
@click.option(
    "--host",
    default="127.0.0.1",
    help="Host to bind to (use 0.0.0.0 for Docker)"
)
@click.option(
    "--transport",
    type=click.Choice(TRANSPORTS),
    default="stdio",
    help="Transport type (stdio, sse, or streamable-http)"
)
@click.pass_obj
def serve(config, port: int, host: str, transport: str) -> None:
    """Run the feed_normalizer MCP server with the specified transport."""
    server = create_mcp_server(config)
    try:
        asyncio.run(run_server(server, transport=transport, host=host, port=port))
    except KeyboardInterrupt:
        logger.info("Server stopped by user")
    except Exception as e:
        logger.error(f"Failed to start server: {e}", exc_info=True)
        sys.exit(1)


if __name__ == "__main__":
    main()
