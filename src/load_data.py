"""PostgreSQL write helpers for boards and their test runs."""

# Every write borrows one pooled connection so a board upsert and its run insert commit together.
from datetime import date, datetime

from db_pool import get_pool

BOARD_FIELDS = (
    "hardware_rev",
    "pcb_rev",
    "batch",
    "date_assembled",
    "assembled_by",
    "country",
    "lab",
    "status",
    "gdt_key",
    "gdt_url",
    "notes",
)

BOARDS_DDL = """
    CREATE TABLE IF NOT EXISTS boards (
        board_id BIGSERIAL PRIMARY KEY,
        serial_number VARCHAR(64) NOT NULL UNIQUE,
        hardware_rev VARCHAR(64),
        pcb_rev VARCHAR(64),
        batch VARCHAR(64),
        date_assembled DATE,
        assembled_by VARCHAR(128),
        country VARCHAR(64),
        lab VARCHAR(128),
        status VARCHAR(32),
        gdt_key VARCHAR(128),
        gdt_url TEXT,
        notes TEXT,
        created_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
        updated_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
    );
"""

TEST_RUNS_DDL = """
    CREATE TABLE IF NOT EXISTS test_runs (
        testrun_id BIGSERIAL PRIMARY KEY,
        board_id BIGINT NOT NULL REFERENCES boards (board_id) ON DELETE CASCADE,
        test_datetime TIMESTAMPTZ NOT NULL DEFAULT NOW(),
        test_location VARCHAR(64),
        tester VARCHAR(128) NOT NULL,
        firmware_version VARCHAR(64),
        test_fixture_version VARCHAR(64),
        overall_result VARCHAR(16),
        comments TEXT
    );
"""


def ensure_schema(pool=None):
    """Create the ``boards`` and ``test_runs`` tables when missing.

    Safe to call on every startup; all statements use ``IF NOT EXISTS`` and
    run in a single transaction.

    :param pool: Optional connection pool; defaults to the shared pool.
    :type pool: psycopg_pool.ConnectionPool | None
    :returns: ``None``.
    :rtype: None
    :raises psycopg.Error: When the DDL cannot be applied.
    """
    pool = pool or get_pool()
    with pool.connection() as conn:
        with conn.cursor() as cur:
            cur.execute(BOARDS_DDL)
            cur.execute(TEST_RUNS_DDL)
            cur.execute(
                'CREATE INDEX IF NOT EXISTS test_runs_board_id_idx ON test_runs (board_id);'
            )
            cur.execute(
                'CREATE INDEX IF NOT EXISTS test_runs_test_datetime_idx '
                'ON test_runs (test_datetime DESC);'
            )
        conn.commit()


def _clean(value):
    """Map missing/empty optional values to ``None`` so they store as NULL."""
    return value if value else None


def format_date(value):
    """Convert an ISO date value to a ``date`` object for PostgreSQL.

    :param value: ``date``/``datetime`` or string such as ``'2025-03-14'``.
    :type value: str | datetime.date | None
    :returns: Parsed date or ``None`` when missing.
    :rtype: datetime.date | None
    :raises ValueError: When a non-empty value is not a valid date.
    """
    if not value:
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    text = str(value).strip()
    # Accept full ISO timestamps from browser date pickers; keep only the date part.
    day = text.split('T', 1)[0].split(' ', 1)[0]
    try:
        return datetime.strptime(day, '%Y-%m-%d').date()
    except ValueError as exc:
        raise ValueError(f'date_assembled must be YYYY-MM-DD, got {text!r}') from exc


def _serial_from(board):
    """Return the trimmed serial number or raise when it is blank."""
    serial = board.get('serial_number')
    serial = str(serial).strip() if serial is not None else ''
    if not serial:
        raise ValueError('serial_number is required')
    return serial


def upsert_board(cur, board):
    """Insert a board or update the existing row with the same serial number.

    Every optional attribute is overwritten with the submitted value, or
    NULL when absent. The row is then re-read to return its identifier.

    :param cur: Open cursor inside the caller's transaction.
    :type cur: psycopg.Cursor
    :param board: Board attributes; ``serial_number`` is required.
    :type board: dict
    :returns: ``{"board_id": ..., "serial_number": ...}``.
    :rtype: dict
    :raises ValueError: When the serial number is missing/blank or the
        assembly date is malformed.
    """
    serial = _serial_from(board)
    values = [_clean(board.get(field)) for field in BOARD_FIELDS]
    values[BOARD_FIELDS.index('date_assembled')] = format_date(board.get('date_assembled'))

    cur.execute("""
        INSERT INTO boards (
            serial_number, hardware_rev, pcb_rev, batch, date_assembled,
            assembled_by, country, lab, status, gdt_key, gdt_url, notes
        )
        VALUES (%s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s)
        ON CONFLICT (serial_number) DO UPDATE SET
            hardware_rev = EXCLUDED.hardware_rev,
            pcb_rev = EXCLUDED.pcb_rev,
            batch = EXCLUDED.batch,
            date_assembled = EXCLUDED.date_assembled,
            assembled_by = EXCLUDED.assembled_by,
            country = EXCLUDED.country,
            lab = EXCLUDED.lab,
            status = EXCLUDED.status,
            gdt_key = EXCLUDED.gdt_key,
            gdt_url = EXCLUDED.gdt_url,
            notes = EXCLUDED.notes,
            updated_at = NOW()
    """, (serial, *values))

    cur.execute(
        'SELECT board_id, serial_number FROM boards WHERE serial_number = %s LIMIT 1;',
        (serial,),
    )
    row = cur.fetchone()
    if row is None:
        raise RuntimeError(f'board {serial!r} missing after upsert')
    return {'board_id': row[0], 'serial_number': row[1]}


def create_test_run(board, run, pool=None):
    """Upsert the run's board and record the test run against it.

    Both statements share one connection and commit together.

    :param board: Board attributes; ``serial_number`` is required.
    :type board: dict
    :param run: Run attributes; ``tester`` is required.
    :type run: dict
    :param pool: Optional connection pool; defaults to the shared pool.
    :type pool: psycopg_pool.ConnectionPool | None
    :returns: ``{"testrun_id": ..., "board_id": ...}``.
    :rtype: dict
    :raises ValueError: When required fields are missing.
    """
    if not run.get('tester'):
        raise ValueError('run.tester is required')
    # Reject bad input before borrowing a connection.
    _serial_from(board)

    pool = pool or get_pool()
    with pool.connection() as conn:
        with conn.cursor() as cur:
            saved = upsert_board(cur, board)
            cur.execute("""
                INSERT INTO test_runs (
                    board_id, test_location, tester, firmware_version,
                    test_fixture_version, overall_result, comments
                )
                VALUES (%s, %s, %s, %s, %s, %s, %s)
                RETURNING testrun_id
            """, (
                saved['board_id'],
                _clean(run.get('test_location')),
                run['tester'],
                _clean(run.get('firmware_version')),
                _clean(run.get('test_fixture_version')),
                _clean(run.get('overall_result')),
                _clean(run.get('comments')),
            ))
            testrun_id = cur.fetchone()[0]
        conn.commit()
    return {'testrun_id': testrun_id, 'board_id': saved['board_id']}
