#!/usr/bin/env python3

"""
Readers base class

This file is part of pg_metadump.
"""

from abc import ABC, abstractmethod

from .catalog import Catalog


class Reader(ABC):
    """
    The base class of an object to read the catalog of a db to dump.
    """

    def __init__(self):
        self.catalog = Catalog()

    @abstractmethod
    def load_catalog(self):
        pass
