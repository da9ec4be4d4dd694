"""Setuptools configuration for the board test-records API."""

from setuptools import find_packages, setup


setup(
    name="board-test-records-api",
    version="0.1.0",
    description="Flask + PostgreSQL API recording circuit boards and their test runs",
    package_dir={"": "src"},
    packages=find_packages(where="src"),
    py_modules=[
        "db_config",
        "db_pool",
        "load_data",
        "query_data",
        "run",
    ],
    python_requires=">=3.10",
    install_requires=[
        "Flask>=2.3",
        "Werkzeug>=2.3",
        "psycopg[binary]>=3.1",
        "psycopg-pool>=3.2",
    ],
    extras_require={
        "test": ["pytest"],
        "docs": ["sphinx"],
    },
    entry_points={
        "console_scripts": [
            "board-test-api=run:main",
        ],
    },
)
