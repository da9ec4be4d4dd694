"""Flask application factory for the board test-records API."""

from flask import Flask

from api import routes


def create_app(
    *,
    test_config=None,
    pool=None,
    probe_fn=None,
    list_runs_fn=None,
    get_board_fn=None,
    create_run_fn=None,
):
    """Create and configure the Flask application.

    :param test_config: Optional config dictionary applied after app creation.
    :type test_config: dict | None
    :param pool: Optional connection pool handed to every service call.
    :type pool: psycopg_pool.ConnectionPool | None
    :param probe_fn: Optional override for the database probe service.
    :type probe_fn: collections.abc.Callable | None
    :param list_runs_fn: Optional override for the recent-runs service.
    :type list_runs_fn: collections.abc.Callable | None
    :param get_board_fn: Optional override for the board lookup service.
    :type get_board_fn: collections.abc.Callable | None
    :param create_run_fn: Optional override for the run ingestion service.
    :type create_run_fn: collections.abc.Callable | None
    :returns: Configured Flask app instance.
    :rtype: flask.Flask
    """
    app = Flask(__name__)
    if test_config:
        app.config.update(test_config)
    if pool is not None:
        app.config["DB_POOL"] = pool
    overrides = {
        "PROBE_FN": probe_fn,
        "LIST_RUNS_FN": list_runs_fn,
        "GET_BOARD_FN": get_board_fn,
        "CREATE_RUN_FN": create_run_fn,
    }
    for key, fn in overrides.items():
        if fn is not None:
            app.config[key] = fn

    app.register_blueprint(routes.bp)
    return app
