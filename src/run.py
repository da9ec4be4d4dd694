# Minimal entrypoint: build the Flask app once, bootstrap the schema, then serve.
"""Flask application entry point."""

import os
import sys

import psycopg

from api import create_app
from db_config import describe_db_target, get_listen_port
from db_pool import close_pool, init_pool
from load_data import ensure_schema

app = create_app()


def main():
    """Open the pool, create tables, and serve until interrupted.

    Any failure before the server starts listening terminates the process
    with exit status 1.
    """
    try:
        port = get_listen_port()
        pool = init_pool()
        ensure_schema(pool)
    except (psycopg.Error, OSError, ValueError, RuntimeError) as exc:
        print(f"Startup failed: {exc}", file=sys.stderr)
        close_pool()
        sys.exit(1)

    debug = os.getenv("FLASK_DEBUG", "0").strip().lower() in {"1", "true", "yes", "on"}
    print(f"API listening on port {port}")
    print(f"DB: {describe_db_target()}")
    try:
        # Reloader would fork a second process with its own pool.
        app.run(host="0.0.0.0", port=port, debug=debug, threaded=True, use_reloader=False)
    finally:
        close_pool()


if __name__ == "__main__":
    main()
