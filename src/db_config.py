"""Environment-driven database and server configuration."""

import os
from pathlib import Path

DEFAULT_LISTEN_PORT = 3000
DEFAULT_POOL_MAX = 10


def _load_env_file(path: Path) -> None:
    """Load KEY=VALUE pairs from a .env-style file into os.environ.

    Existing environment variables are preserved.

    :param path: Filesystem path to the ``.env``-style file.
    :type path: pathlib.Path
    :returns: ``None``.
    :rtype: None
    """
    if not path.exists():
        return
    for raw_line in path.read_text(encoding="utf-8").splitlines():
        line = raw_line.strip()
        if not line or line.startswith("#") or "=" not in line:
            continue
        key, value = line.split("=", 1)
        key = key.strip()
        value = value.strip().strip('"').strip("'")
        if key and key not in os.environ:
            os.environ[key] = value


def _autoload_env() -> None:
    """Load local .env defaults when variables were not pre-exported."""
    src_dir = Path(__file__).resolve().parent
    env_candidates = (
        src_dir.parent / ".env",  # project root
        src_dir / ".env",         # src/.env (optional local override)
    )
    for env_path in env_candidates:
        _load_env_file(env_path)


_autoload_env()


def _int_env(name: str, default: int) -> int:
    """Read an integer environment variable, failing loudly on garbage.

    :param name: Environment variable name.
    :type name: str
    :param default: Value used when the variable is unset or blank.
    :type default: int
    :returns: Parsed integer value.
    :rtype: int
    :raises ValueError: When the variable is set but not an integer.
    """
    raw = os.getenv(name, "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError as exc:
        raise ValueError(f"{name} must be an integer, got {raw!r}") from exc


def _build_conn_info(
    host: str,
    port: str,
    dbname: str,
    user: str | None,
    password: str | None,
) -> str:
    """Compose a psycopg connection-info string from discrete settings.

    :param host: Database host name.
    :type host: str
    :param port: Database port.
    :type port: str
    :param dbname: Database name.
    :type dbname: str
    :param user: Optional login role/user.
    :type user: str | None
    :param password: Optional login password.
    :type password: str | None
    :returns: Space-delimited connection info string for psycopg.
    :rtype: str
    """
    parts = [
        f"host={host}",
        f"port={port}",
        f"dbname={dbname}",
    ]
    if user:
        parts.append(f"user={user}")
    if password:
        parts.append(f"password={password}")
    return " ".join(parts)


def get_db_name() -> str:
    """Return the target database name from environment."""
    return os.getenv("DB_NAME", "board_tests")


def get_db_port() -> int:
    """Return the database port from environment."""
    return _int_env("DB_PORT", 5432)


def get_db_conn_info() -> str:
    """Return application connection info using env vars.

    Uses ``DATABASE_URL`` when present, otherwise composes a connection
    string from ``DB_*`` variables.

    :returns: Connection info for the app role.
    :rtype: str
    """
    database_url = os.getenv("DATABASE_URL")
    if database_url:
        return database_url
    return _build_conn_info(
        host=os.getenv("DB_HOST", "localhost"),
        port=str(get_db_port()),
        dbname=get_db_name(),
        user=os.getenv("DB_USER"),
        password=os.getenv("DB_PASSWORD"),
    )


def describe_db_target() -> str:
    """Return a password-free ``user@host:port/name`` label for log lines."""
    if os.getenv("DATABASE_URL"):
        return "DATABASE_URL"
    user = os.getenv("DB_USER") or ""
    host = os.getenv("DB_HOST", "localhost")
    return f"{user}@{host}:{get_db_port()}/{get_db_name()}"


def get_pool_max_size() -> int:
    """Return the maximum number of pooled database connections."""
    size = _int_env("DB_POOL_MAX", DEFAULT_POOL_MAX)
    if size < 1:
        raise ValueError("DB_POOL_MAX must be at least 1")
    return size


def get_listen_port() -> int:
    """Return the HTTP listen port."""
    return _int_env("PORT", DEFAULT_LISTEN_PORT)
