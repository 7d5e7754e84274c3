import io
import logging
from datetime import timedelta

import pytest

from metadump.consts import VERSION
from metadump.dbobjects import Schema
from metadump.dummywriter import DummyWriter
from metadump.dumpwriter import DumpWriter, pretty_timedelta


def write_dump(writer):
    writer.begin_dump()
    writer.write_predata(Schema(1, "app"), "\n\nCREATE SCHEMA app;")
    writer.write_constraints("\n\nALTER TABLE ONLY app.t ADD CONSTRAINT k UNIQUE (i);\n")
    writer.write_postdata("\n\nCREATE INDEX i ON app.t USING btree (x);\n")
    writer.end_dump()


def test_single_file():
    f = io.StringIO()
    write_dump(DumpWriter(f))
    out = f.getvalue()
    assert out.startswith(
        "-- PostgreSQL pre-data metadata generated by pg_metadump %s\n" % VERSION
    )
    assert "SET client_encoding = 'UTF8';\n" in out
    assert "SET standard_conforming_strings = on;\n" in out
    assert "SET check_function_bodies = false;\n" in out
    assert (
        "\n\nCREATE SCHEMA app;"
        "\n\nALTER TABLE ONLY app.t ADD CONSTRAINT k UNIQUE (i);\n"
        "\n\n\nCREATE INDEX i ON app.t USING btree (x);\n"
    ) in out
    assert "-- Metadata dump finished at" in out
    assert out.endswith("-- vim: set filetype=:\n")


def test_postdata_file():
    f = io.StringIO()
    pf = io.StringIO()
    write_dump(DumpWriter(f, postdata_outfile=pf))
    out = f.getvalue()
    post = pf.getvalue()

    assert "CREATE SCHEMA app;" in out
    assert "CREATE INDEX" not in out
    assert post.startswith("-- PostgreSQL post-data metadata generated by")
    assert "\n\nCREATE INDEX i ON app.t USING btree (x);\n" in post
    assert "CREATE SCHEMA" not in post
    assert out.endswith("-- vim: set filetype=:\n")
    assert post.endswith("-- vim: set filetype=:\n")


def test_skip_empty_predata(caplog):
    caplog.set_level(logging.INFO, logger="metadump")
    f = io.StringIO()
    writer = DumpWriter(f)
    writer.write_predata(Schema(1, "app"), "\n\nCREATE SCHEMA app;")
    writer.write_predata(Schema(2, "internal"), "")
    assert f.getvalue() == "\n\nCREATE SCHEMA app;"
    assert "dumping schema app" in caplog.text
    assert "skipping schema internal" in caplog.text
    assert "dumping schema internal" not in caplog.text


def test_write_error():
    class BadFile(io.StringIO):
        def write(self, data):
            raise OSError("disk full")

    with pytest.raises(OSError):
        write_dump(DumpWriter(BadFile()))


@pytest.mark.parametrize(
    "delta, expected",
    [
        (timedelta(0), "0s"),
        (timedelta(seconds=5), "5s"),
        (timedelta(minutes=2, seconds=3), "2m 3s"),
        (timedelta(hours=1), "1h 0m 0s"),
        (timedelta(days=1, seconds=1), "1d 0h 0m 1s"),
    ],
)
def test_pretty_timedelta(delta, expected):
    assert pretty_timedelta(delta) == expected


def test_dummy_writer(caplog):
    caplog.set_level(logging.INFO, logger="metadump")
    writer = DummyWriter()
    writer.begin_dump()
    writer.write_predata(Schema(1, "app"), "\n\nCREATE SCHEMA app;")
    writer.write_predata(Schema(2, "public"), "")
    writer.write_constraints("")
    writer.write_postdata("")
    writer.end_dump()
    assert "would dump schema app" in caplog.text
    assert "would skip schema public" in caplog.text
    assert "would dump constraints" in caplog.text
