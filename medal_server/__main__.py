import argparse
import logging
import sys

from .config import ConfigError, ServeConfig
from .server import create_app

logger = logging.getLogger("medal_server")


def build_parser():
    parser = argparse.ArgumentParser(prog="medal-server", description="Serve the Luau / Lua 5.1 decompiler over HTTP")
    parser.add_argument("--port", help="Port to listen on (default: $PORT or 3000)")
    parser.add_argument("--host", default=None, help="Interface to bind (default: $HOST or 0.0.0.0)")
    parser.add_argument("--luau", action="store_true", help="Enable the Luau decompile endpoint")
    parser.add_argument("--lua51", action="store_true", help="Enable the Lua 5.1 decompile endpoint")
    parser.add_argument("--assets", dest="asset_dir", default=None, help="Directory served for non-API paths")
    parser.add_argument("--index", dest="index_file", default=None, help="Default document inside the asset directory")
    parser.add_argument("--luau-lifter", default=None, help="Path to the Luau lifter executable")
    parser.add_argument("--lua51-lifter", default=None, help="Path to the Lua 5.1 lifter executable")
    parser.add_argument("--timeout", dest="lifter_timeout", type=float, default=None, help="Lifter timeout in seconds")
    parser.add_argument("--allow-empty", action="store_true", help="Start even if no decompile endpoint is enabled")
    parser.add_argument("--log-level", default="INFO", choices=["DEBUG", "INFO", "WARNING", "ERROR"])
    return parser


def main(argv=None):
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    try:
        config = ServeConfig.from_env(
            port=args.port,
            host=args.host,
            luau=args.luau,
            lua51=args.lua51,
            asset_dir=args.asset_dir,
            index_file=args.index_file,
            luau_lifter=args.luau_lifter,
            lua51_lifter=args.lua51_lifter,
            lifter_timeout=args.lifter_timeout,
        )
    except ConfigError as e:
        logger.error(str(e))
        return 2

    if not config.enabled_dialects() and not args.allow_empty:
        logger.error("No decompiler enabled, pass --luau and/or --lua51")
        return 2

    app = create_app(config)
    logger.info("Decompiler active at http://%s:%d", config.host, config.port)
    app.run(host=config.host, port=config.port, threaded=True)
    return 0


if __name__ == "__main__":
    sys.exit(main())
