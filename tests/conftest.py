import io
import pytest

from metadump.dumper import Dumper
from metadump.dbreader import DbReader
from metadump.dumpwriter import DumpWriter

from .testreader import TestReader
from .testwriter import TestWriter


pytest_plugins = ("tests.fix_db",)


@pytest.fixture
def dumper():
    """Return a `metadump.Dumper` configured for testing."""
    reader = TestReader()
    writer = TestWriter()
    dumper = Dumper(reader=reader, writer=writer)
    return dumper


@pytest.fixture
def dbdumper(dsn, db):
    """Return a `metadump.Dumper` configured for db interaction."""
    reader = DbReader(dsn)
    writer = DumpWriter(outfile=io.StringIO())
    dumper = Dumper(reader=reader, writer=writer)
    return dumper
