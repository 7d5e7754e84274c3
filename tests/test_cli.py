import logging

import pytest

from metadump import cli
from metadump.exceptions import ConfigError


def test_defaults():
    opt = cli.parse_cmdline(["--dsn", "dbname=test"])
    assert opt.config_files == []
    assert opt.dsn == "dbname=test"
    assert opt.outfile == "-"
    assert opt.postdata_outfile is None
    assert not opt.test
    assert opt.loglevel == logging.INFO


def test_options():
    opt = cli.parse_cmdline(
        ["a.yaml", "b.yaml", "-o", "pre.sql", "--postdata-outfile", "post.sql", "-v"]
    )
    assert opt.config_files == ["a.yaml", "b.yaml"]
    assert opt.outfile == "pre.sql"
    assert opt.postdata_outfile == "post.sql"
    assert opt.loglevel == logging.DEBUG


def test_quiet_verbose_exclusive():
    with pytest.raises(SystemExit):
        cli.parse_cmdline(["-q", "-v"])


def test_open_output_stdout():
    to_close = []
    assert cli.open_output("-", to_close) is cli.sys.stdout
    assert to_close == []


def test_open_output_file(tmp_path):
    to_close = []
    f = cli.open_output(str(tmp_path / "out.sql"), to_close)
    try:
        assert to_close == [f]
        f.write("hello")
    finally:
        f.close()
    assert (tmp_path / "out.sql").read_text() == "hello"


def test_open_output_error(tmp_path):
    with pytest.raises(ConfigError):
        cli.open_output(str(tmp_path / "nodir" / "out.sql"), [])
