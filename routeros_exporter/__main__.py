"""Entry point — python -m routeros_exporter."""

from __future__ import annotations

import argparse
import asyncio


def main() -> None:
    parser = argparse.ArgumentParser(
        prog="routeros-exporter",
        description="Prometheus exporter for MikroTik RouterOS devices",
    )
    parser.add_argument(
        "-c", "--config",
        help="Path to configuration YAML file",
        default=None,
    )
    parser.add_argument("--host", help="Listen address (overrides config)")
    parser.add_argument("--port", type=int, help="Listen port (overrides config)")
    parser.add_argument(
        "--log-level",
        choices=["debug", "info", "warning", "error"],
        help="Log level (overrides config)",
    )
    args = parser.parse_args()

    from routeros_exporter.app import Application
    from routeros_exporter.config.settings import load_config

    settings = load_config(args.config)
    if args.host:
        settings.server.host = args.host
    if args.port:
        settings.server.port = args.port
    if args.log_level:
        settings.log_level = args.log_level

    app = Application(settings=settings)
    try:
        asyncio.run(app.start())
    except KeyboardInterrupt:
        pass


if __name__ == "__main__":
    main()
