"""CLI entry point: python -m idlecore.mcp [config.toml]"""

from __future__ import annotations

import logging
import sys

from idlecore.cli import load_definition


def main() -> None:
    # stdout carries the protocol; logs go to stderr.
    logging.basicConfig(level=logging.WARNING, stream=sys.stderr)

    config_path = sys.argv[1] if len(sys.argv) > 1 else None
    definition = load_definition(config_path)

    from idlecore.mcp.server import create_server

    server = create_server(definition)
    server.run(transport="stdio")


if __name__ == "__main__":
    main()
