"""Read queries backing the board lookup and test-run listing endpoints."""

# Approach: small parameterized queries returning dict rows that serialize straight to JSON.
from datetime import date, datetime

from psycopg.rows import dict_row

from db_pool import get_pool

MAX_RUN_ROWS = 500


def _clamp_limit(limit, minimum=1, maximum=MAX_RUN_ROWS):
    """Clamp a requested row limit to a safe bounded range."""
    value = int(limit)
    return max(minimum, min(value, maximum))


def _serialize_row(row):
    """Render date/datetime columns as ISO-8601 strings."""
    return {
        key: value.isoformat() if isinstance(value, (date, datetime)) else value
        for key, value in row.items()
    }


def execute_query(query, params=None, pool=None):
    """Execute a SQL query and return all result rows as dictionaries.

    :param query: SQL query text with ``%s`` placeholders.
    :type query: str
    :param params: Optional SQL parameter values for placeholders in ``query``.
    :type params: list | tuple | None
    :param pool: Optional connection pool; defaults to the shared pool.
    :type pool: psycopg_pool.ConnectionPool | None
    :returns: List of rows keyed by column name.
    :rtype: list[dict]
    :raises RuntimeError: Wrapped database exception with contextual message.
    """
    try:
        pool = pool or get_pool()
        with pool.connection() as conn:
            with conn.cursor(row_factory=dict_row) as cur:  # pylint: disable=no-member
                cur.execute(query, params)
                return [_serialize_row(row) for row in cur.fetchall()]
    except Exception as e:
        raise RuntimeError(f'Database query failed: {e}') from e


def probe_database(pool=None):
    """Return the database server's current time and active database name."""
    return execute_query('SELECT NOW() AS now, current_database() AS db;', pool=pool)[0]


def list_test_runs(limit=MAX_RUN_ROWS, pool=None):
    """Return the most recent test runs joined with their board serial.

    :param limit: Maximum rows to return, clamped to [1, 500].
    :type limit: int
    :param pool: Optional connection pool; defaults to the shared pool.
    :type pool: psycopg_pool.ConnectionPool | None
    :returns: Run rows ordered newest first.
    :rtype: list[dict]
    """
    return execute_query(
        """
        SELECT
            tr.testrun_id,
            b.serial_number,
            tr.test_datetime,
            tr.test_location,
            tr.tester,
            tr.firmware_version,
            tr.test_fixture_version,
            tr.overall_result,
            tr.comments
        FROM test_runs tr
        JOIN boards b ON b.board_id = tr.board_id
        ORDER BY tr.test_datetime DESC, tr.testrun_id DESC
        LIMIT %s;
        """,
        (_clamp_limit(limit),),
        pool=pool,
    )


def get_board_with_runs(serial, pool=None):
    """Look up one board by serial number along with all of its runs.

    :param serial: Board serial number.
    :type serial: str
    :param pool: Optional connection pool; defaults to the shared pool.
    :type pool: psycopg_pool.ConnectionPool | None
    :returns: ``(board, runs)`` or ``None`` when no board has that serial.
    :rtype: tuple[dict, list[dict]] | None
    """
    boards = execute_query(
        'SELECT * FROM boards WHERE serial_number = %s LIMIT 1;',
        (serial,),
        pool=pool,
    )
    if not boards:
        return None
    board = boards[0]
    runs = execute_query(
        """
        SELECT
            testrun_id, test_datetime, test_location, tester, firmware_version,
            test_fixture_version, overall_result, comments
        FROM test_runs
        WHERE board_id = %s
        ORDER BY test_datetime DESC, testrun_id DESC;
        """,
        (board['board_id'],),
        pool=pool,
    )
    return board, runs
