"""
Configuration loading and validation.

This file is part of pg_metadump.
"""

import re
import logging
from importlib import resources

import yaml
from jsonschema import Draft7Validator

logger = logging.getLogger("metadump.config")

validator = Draft7Validator(
    schema=yaml.load(
        resources.files("metadump").joinpath("schema/config.yaml").read_text(),
        Loader=yaml.SafeLoader,
    )
)


def load_yaml(stream):
    """Load a yaml document from a string or a file."""
    return yaml.load(stream, Loader=yaml.SafeLoader)


def load_config(filename):
    """
    Load and validate a configuration file.

    Return the content as a Python object, validated according to the
    ``config.yaml`` schema, else None (and log about errors).
    """
    try:
        with open(filename) as f:
            conf = load_yaml(f)
    except Exception as e:
        logger.error("loading %s: %s", filename, e)
        return None

    errors = get_config_errors(conf, filename)
    if errors:
        for error in errors:
            logger.error("%s", error)
        return None

    return conf


def get_config_errors(conf, filename="<no name>"):
    """
    Validate a configuration object and return the list of errors found.
    """
    rv = []

    # Give a clearer error message than what jsonschema would give
    # Something like: None is not of type 'object'
    if not isinstance(conf, dict):
        rv.append(located_message(None, filename, "config must be an object"))
        return rv

    for error in validator.iter_errors(conf):
        rv.append(located_message(list(error.path), filename, error.message))

    for attr in ("schemas", "exclude_schemas"):
        if isinstance(conf.get(attr), str):
            try:
                re.compile(conf[attr], re.VERBOSE)
            except re.error as e:
                msg = "not a valid regular expression: %s" % e
                rv.append(located_message([attr], filename, msg))

    rv.sort()
    return rv


def located_message(path, filename, message):
    """
    Add location informations to a message string.
    """
    if path:
        return "in %s at %s: %s" % (filename, ".".join(map(str, path)), message)
    else:
        return "in %s: %s" % (filename, message)
