import os

import pytest
import psycopg
from psycopg import sql


def pytest_addoption(parser):
    parser.addoption(
        "--test-dsn",
        metavar="DSN",
        default=os.environ.get("METADUMP_TEST_DSN") or None,
        help="Connection string to run database tests with the `conn` fixture"
        " [you can also use the METADUMP_TEST_DSN env var].",
    )


@pytest.fixture()
def dsn(request):
    """Return the dsn used to connect to the `--test-dsn` database."""
    dsn = request.config.getoption("--test-dsn")
    if not dsn:
        pytest.skip("skipping test as no --test-dsn")
    return dsn


@pytest.fixture()
def conn(dsn):
    """Return a database connection connected to `--test-dsn`."""
    cnn = psycopg.connect(dsn, autocommit=True)
    yield cnn
    cnn.close()


@pytest.fixture()
def db(conn):
    """Return an object to create test objects in an empty database."""
    rv = TestingDatabase(conn)
    rv.clear_database()
    return rv


class TestingDatabase:
    """
    An object to create test databases definitions
    """

    __test__ = False

    def __init__(self, connection):
        self.connection = connection

    def clear_database(self):
        """
        Delete all the user objects in the database.

        Really.
        """
        with self.connection.cursor() as cur:
            cur.execute(
                """
select n.nspname
from pg_namespace n
where n.nspname !~ '^pg_'
and n.nspname <> 'information_schema'
and n.nspname <> 'gp_toolkit'
order by 1
"""
            )
            for (name,) in cur.fetchall():
                cur.execute(
                    sql.SQL("drop schema {} cascade").format(sql.Identifier(name))
                )
            cur.execute("create schema public")

    def execute(self, statements):
        """Execute one or more ;-separated statements."""
        with self.connection.cursor() as cur:
            cur.execute(statements)
