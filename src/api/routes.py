"""JSON route handlers for board lookup and test-run ingestion."""

import psycopg
from flask import Blueprint, current_app, jsonify, request
from werkzeug.exceptions import InternalServerError

from load_data import create_test_run
from query_data import get_board_with_runs, list_test_runs, probe_database

bp = Blueprint('api', __name__)

# Other exception types reach internal_error below.
_SERVER_ERRORS = (RuntimeError, OSError, TypeError, psycopg.Error)


def _service(key, default):
    """Resolve a service function, preferring an app-config override."""
    return current_app.config.get(key, default)


def _pool():
    """Return the injected connection pool, or ``None`` for the shared one."""
    return current_app.config.get("DB_POOL")


def _error(message, status):
    """Build the JSON error payload shared by every endpoint."""
    return jsonify({"ok": False, "error": message}), status


def _server_error(exc):
    current_app.logger.exception("Request %s %s failed", request.method, request.path)
    return _error(str(exc) or "server error", 500)


@bp.errorhandler(InternalServerError)
def internal_error(exc):
    """Keep the JSON error shape for failures no handler caught."""
    original = getattr(exc, 'original_exception', None) or exc
    return _error(str(original) or "server error", 500)


@bp.route('/health')
def health():
    """Report liveness without touching the database."""
    return jsonify({"ok": True})


@bp.route('/db-test')
def db_test():
    """Return database server time and the active database name.

    :returns: JSON ``{"now": ..., "db": ...}`` or a 500 error payload.
    :rtype: flask.Response | tuple[flask.Response, int]
    """
    try:
        return jsonify(_service("PROBE_FN", probe_database)(pool=_pool()))
    except _SERVER_ERRORS as exc:
        return _server_error(exc)


@bp.route('/api/test-runs', methods=['GET'])
def test_runs_index():
    """List the most recent test runs, newest first, capped at 500 rows."""
    try:
        runs = _service("LIST_RUNS_FN", list_test_runs)(pool=_pool())
    except _SERVER_ERRORS as exc:
        return _server_error(exc)
    return jsonify({"ok": True, "runs": runs})


@bp.route('/api/board/', defaults={'serial': ''})
@bp.route('/api/board/<serial>')
def board_detail(serial):
    """Return one board and its runs.

    :param serial: Board serial number from the URL.
    :type serial: str
    :returns: 400 for a blank serial, 404 when unknown, else board and runs.
    :rtype: flask.Response | tuple[flask.Response, int]
    """
    serial = (serial or '').strip()
    if not serial:
        return _error("serial required", 400)
    try:
        found = _service("GET_BOARD_FN", get_board_with_runs)(serial, pool=_pool())
    except _SERVER_ERRORS as exc:
        return _server_error(exc)
    if found is None:
        return _error("not found", 404)
    board, runs = found
    return jsonify({"ok": True, "board": board, "runs": runs})


@bp.route('/api/test-runs', methods=['POST'])
def test_runs_create():
    """Record a test run, creating or updating its board first.

    Expects a JSON body ``{"board": {...}, "run": {...}}`` where
    ``board.serial_number`` and ``run.tester`` are required.

    :returns: ``{"ok": true, "testrun_id": ..., "board_id": ...}``, 400 on
        invalid input, 500 on unexpected failure.
    :rtype: flask.Response | tuple[flask.Response, int]
    """
    body = request.get_json(silent=True)
    if not isinstance(body, dict):
        body = {}
    board = body.get("board")
    run = body.get("run")
    if not isinstance(board, dict) or not isinstance(run, dict):
        return _error("Body must include { board, run }", 400)
    if not run.get("tester"):
        return _error("run.tester is required", 400)

    try:
        created = _service("CREATE_RUN_FN", create_test_run)(board, run, pool=_pool())
    except ValueError as exc:
        return _error(str(exc), 400)
    except _SERVER_ERRORS as exc:
        return _server_error(exc)
    return jsonify({
        "ok": True,
        "testrun_id": created["testrun_id"],
        "board_id": created["board_id"],
    })
