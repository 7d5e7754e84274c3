#!/usr/bin/env python3
"""
Writers base class

This file is part of pg_metadump.
"""

from abc import ABC, abstractmethod


class Writer(ABC):
    """
    The base class of an object to write a metadata dump.

    Writers receive text already generated: the predata section first, then
    the postdata section.
    """

    @abstractmethod
    def begin_dump(self):
        pass

    @abstractmethod
    def end_dump(self):
        pass

    @abstractmethod
    def write_predata(self, obj, text):
        """Write the definition of a predata object."""

    @abstractmethod
    def write_constraints(self, text):
        pass

    @abstractmethod
    def write_postdata(self, text):
        pass
