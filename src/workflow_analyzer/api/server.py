"""Run the HTTP server."""

from __future__ import annotations

import argparse
import os

from dotenv import load_dotenv

from .app import create_app


def main() -> None:
    load_dotenv()

    parser = argparse.ArgumentParser(description="Miro workflow analyzer API server")
    parser.add_argument("--host", default=os.environ.get("HOST", "0.0.0.0"))
    parser.add_argument("--port", type=int, default=int(os.environ.get("PORT", "3000")))
    parser.add_argument("--debug", action="store_true")
    args = parser.parse_args()

    app = create_app()
    app.run(host=args.host, port=args.port, debug=args.debug)


if __name__ == "__main__":
    main()
