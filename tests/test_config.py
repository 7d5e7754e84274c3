import logging

import pytest

from metadump.config import get_config_errors, load_config, load_yaml


def test_empty_object():
    """A config file with an empty object is ok."""
    conf = load_yaml("{}")
    errors = get_config_errors(conf)
    assert not errors


def test_full_config():
    conf = load_yaml(
        """\
schemas: [public, app]
exclude_schemas: "^tmp_"
comments:
  rules: true
  triggers: false
"""
    )
    errors = get_config_errors(conf)
    assert not errors


@pytest.mark.parametrize("data", ["", "[]", "1", "42", '"hi"'])
def test_bad_start(data):
    """The config file must contain a dict."""
    conf = load_yaml(data)
    errors = get_config_errors(conf)
    assert len(errors) == 1
    assert "object" in errors[0]


def test_unexpected_attr():
    conf = load_yaml("schema: [public]")
    errors = get_config_errors(conf)
    assert len(errors) == 1
    assert "schema" in errors[0]
    assert "unexpected" in errors[0]


@pytest.mark.parametrize("attr", ("schemas", "exclude_schemas"))
def test_bad_names(attr):
    conf = load_yaml("%s: [public, 42]" % attr)
    errors = get_config_errors(conf)
    assert len(errors) == 1
    assert "at %s:" % attr in errors[0]

    conf = load_yaml("%s: {a: b}" % attr)
    errors = get_config_errors(conf)
    assert len(errors) == 1
    assert "at %s:" % attr in errors[0]


@pytest.mark.parametrize("attr", ("schemas", "exclude_schemas"))
def test_bad_regexpr(attr):
    conf = load_yaml("%s: aaa" % attr)
    errors = get_config_errors(conf)
    assert not errors

    conf = load_yaml("%s: aaa(" % attr)
    errors = get_config_errors(conf)
    assert len(errors) == 1
    assert "at %s:" % attr in errors[0]
    assert "not a valid regular expression" in errors[0]


def test_bad_comments():
    conf = load_yaml(
        """\
comments:
  rules: 1
  indexes: true
"""
    )
    errors = get_config_errors(conf)
    assert len(errors) == 2
    assert "at comments.rules:" in errors[0]
    assert "at comments:" in errors[1]
    assert "indexes" in errors[1]


def test_filename_in_error():
    errors = get_config_errors(load_yaml("foo: 1"), "conf.yaml")
    assert errors[0].startswith("in conf.yaml: ")


def test_load_config(tmp_path):
    fn = tmp_path / "conf.yaml"
    fn.write_text("schemas: [app]\n")
    assert load_config(str(fn)) == {"schemas": ["app"]}


def test_load_config_invalid(tmp_path, caplog):
    fn = tmp_path / "conf.yaml"
    fn.write_text("schemas: [app]\nfoo: bar\n")
    assert load_config(str(fn)) is None
    assert "foo" in caplog.text


def test_load_config_missing(tmp_path, caplog):
    caplog.set_level(logging.ERROR, logger="metadump")
    assert load_config(str(tmp_path / "nope.yaml")) is None
    assert "nope.yaml" in caplog.text


def test_load_config_bad_yaml(tmp_path, caplog):
    fn = tmp_path / "conf.yaml"
    fn.write_text("schemas: [app\n")
    assert load_config(str(fn)) is None
    assert "conf.yaml" in caplog.text
