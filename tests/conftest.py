import sys
from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest

# Enforce marker discipline so each test maps to a documented suite category.
ALLOWED_MARKERS = {"web", "db", "config", "integration"}
RUN_EPOCH = datetime(2025, 1, 1, tzinfo=timezone.utc)

# Keep `api` and the flat modules importable when pytest is launched from different working dirs.
SRC_ROOT = Path(__file__).resolve().parents[1] / "src"
if str(SRC_ROOT) not in sys.path:
    sys.path.insert(0, str(SRC_ROOT))


def pytest_configure(config):
    for marker in sorted(ALLOWED_MARKERS):
        config.addinivalue_line("markers", f"{marker}: {marker} suite")


@pytest.fixture
def board_row():
    """Board row as the lookup query returns it after ISO rendering."""
    return {
        "board_id": 7,
        "serial_number": "SN-0007",
        "hardware_rev": "B",
        "pcb_rev": "3",
        "batch": "2025-W11",
        "date_assembled": "2025-03-14",
        "assembled_by": "pat",
        "country": "MX",
        "lab": "Line 2",
        "status": "in_test",
        "gdt_key": None,
        "gdt_url": None,
        "notes": None,
        "created_at": "2025-03-14T09:00:00+00:00",
        "updated_at": "2025-03-14T09:00:00+00:00",
    }


class FakeRecordsDB:
    """In-memory store mirroring the boards/test_runs upsert and ordering rules."""

    def __init__(self):
        self.boards = {}
        self.runs = []
        self._next_board_id = 1
        self._next_run_id = 1
        self._clock = 0

    def upsert_board(self, board):
        serial = str(board.get("serial_number") or "").strip()
        if not serial:
            raise ValueError("serial_number is required")
        from load_data import BOARD_FIELDS

        # Every optional column is rewritten; fields left out become None.
        attrs = {field: board.get(field) or None for field in BOARD_FIELDS}
        existing = self.boards.get(serial)
        if existing is None:
            existing = {"board_id": self._next_board_id, "serial_number": serial}
            self._next_board_id += 1
            self.boards[serial] = existing
        existing.update(attrs)
        return {"board_id": existing["board_id"], "serial_number": serial}

    def create_test_run(self, board, run, pool=None):
        if not run.get("tester"):
            raise ValueError("run.tester is required")
        saved = self.upsert_board(board)
        self._clock += 1
        testrun_id = self._next_run_id
        self._next_run_id += 1
        self.runs.append({
            "testrun_id": testrun_id,
            "board_id": saved["board_id"],
            "test_datetime": (RUN_EPOCH + timedelta(seconds=self._clock)).isoformat(),
            "tester": run["tester"],
            "overall_result": run.get("overall_result"),
        })
        return {"testrun_id": testrun_id, "board_id": saved["board_id"]}

    def _newest_first(self, runs):
        return sorted(runs, key=lambda r: (r["test_datetime"], r["testrun_id"]), reverse=True)

    def list_test_runs(self, limit=500, pool=None):
        serial_by_id = {b["board_id"]: s for s, b in self.boards.items()}
        rows = [dict(r, serial_number=serial_by_id[r["board_id"]]) for r in self.runs]
        return self._newest_first(rows)[:max(1, min(int(limit), 500))]

    def get_board_with_runs(self, serial, pool=None):
        board = self.boards.get(serial)
        if board is None:
            return None
        runs = [r for r in self.runs if r["board_id"] == board["board_id"]]
        return dict(board), self._newest_first(runs)


@pytest.fixture
def fake_records_db():
    """Provide a fresh in-memory records store per test."""
    return FakeRecordsDB()


@pytest.fixture
def fake_app(fake_records_db):
    """Flask app wired to the in-memory store through factory injection."""
    from api import create_app

    return create_app(
        test_config={"TESTING": True},
        probe_fn=lambda pool=None: {"now": "2025-01-01T00:00:00+00:00", "db": "board_tests"},
        list_runs_fn=fake_records_db.list_test_runs,
        get_board_fn=fake_records_db.get_board_with_runs,
        create_run_fn=fake_records_db.create_test_run,
    )


@pytest.fixture
def fake_client(fake_app):
    """Create test client from the shared in-memory app."""
    return fake_app.test_client()


def pytest_collection_modifyitems(session, config, items):
    unmarked = []
    for item in items:
        if not ALLOWED_MARKERS.intersection(item.keywords):
            unmarked.append(item.nodeid)

    if unmarked:
        # Fail collection early so CI does not run partially categorized suites.
        joined = "\n".join(f"- {nodeid}" for nodeid in unmarked)
        raise pytest.UsageError(
            "Each test must include at least one approved marker "
            f"({', '.join(sorted(ALLOWED_MARKERS))}).\n"
            "Unmarked tests:\n"
            f"{joined}"
        )
