#!/usr/bin/env python3

"""
Program exceptions.

This file is part of pg_metadump.
"""


class MetaDumpException(Exception):
    """A controlled exception raised by the script."""


class DumpError(MetaDumpException):
    """Error dumping the database."""


class ConfigError(MetaDumpException):
    """Error parsing configuration."""


class CycleError(DumpError):
    """A set of objects cannot be ordered because they depend on each other."""

    def __init__(self, msg, nodes=()):
        super().__init__(msg)
        self.nodes = list(nodes)
