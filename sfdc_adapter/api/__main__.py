"""
Command line entry point for the Salesforce gateway.

    python -m sfdc_adapter.api --port 8080 --log-level debug

Every option defaults to its SFDC_* environment variable.
"""

from typing import List, Optional
import argparse
import logging
import os

import uvicorn


APP_PATH = "sfdc_adapter.api:app"


def build_parser() -> argparse.ArgumentParser:
    env = os.environ
    parser = argparse.ArgumentParser(
        prog="python -m sfdc_adapter.api",
        description="Serve the Salesforce REST gateway with uvicorn.",
    )
    parser.add_argument("--host", default=env.get("SFDC_HOST", "127.0.0.1"),
                        help="Interface to bind (SFDC_HOST)")
    parser.add_argument("--port", type=int, default=int(env.get("SFDC_PORT", "5050")),
                        help="Port to listen on (SFDC_PORT)")
    parser.add_argument("--reload", action="store_true",
                        default=env.get("SFDC_RELOAD", "").lower() in ("1", "true", "yes"),
                        help="Restart on code changes (SFDC_RELOAD)")
    parser.add_argument("--log-level", default=env.get("SFDC_LOG_LEVEL", "info"),
                        choices=["critical", "error", "warning", "info", "debug"],
                        help="Log level for the adapter and uvicorn (SFDC_LOG_LEVEL)")
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    logging.basicConfig(
        level=args.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    log = logging.getLogger("sfdc_adapter.api")
    log.info("Serving %s on http://%s:%d", APP_PATH, args.host, args.port)

    uvicorn.run(APP_PATH, host=args.host, port=args.port,
                reload=args.reload, log_level=args.log_level)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
