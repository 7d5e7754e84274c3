#!/usr/bin/env python3
"""
Representation of a database catalog to handle by the program.

This file is part of pg_metadump.
"""

from .dbobjects import Relation


class Catalog:
    """
    The snapshot of a database catalog.

    Besides the objects it contains the accessory information needed to
    build their definitions.
    """

    def __init__(self):
        self._objects = []
        self._by_oid = {}
        self._by_name = {}

        # oid -> ObjectMetadata
        self.metadata = {}
        # function oid -> FunctionInfo
        self.functions = {}
        # sequence oid -> escaped name of the column owning it
        self.sequence_owners = {}
        # table oid -> list of Constraint
        self.constraints = {}
        # (oid, oid) pairs: the first view must be created before the second
        self.view_dependencies = []
        # (oid, oid) pairs: the parent table must be created before the child
        self.table_dependencies = []

    def clear(self):
        del self._objects[:]
        self._by_oid.clear()
        self._by_name.clear()
        self.metadata.clear()
        self.functions.clear()
        self.sequence_owners.clear()
        self.constraints.clear()
        del self.view_dependencies[:]
        del self.table_dependencies[:]

    def add_object(self, obj):
        self._objects.append(obj)
        if obj.oid is not None:
            if obj.oid in self._by_oid:
                raise ValueError(
                    "the catalog already contains an object with oid %s" % obj.oid
                )
            self._by_oid[obj.oid] = obj

        if isinstance(obj, Relation):
            key = (obj.schema, obj.name)
            if key in self._by_name:
                raise ValueError(
                    "the catalog already contains an object called %s" % obj
                )
            self._by_name[key] = obj

        return obj

    def get(self, schema=None, name=None, oid=None, cls=None):
        """
        Return an object from the catalog.

        The object can be specified by schema/name (only for relations) or by
        oid. It is possible to specify the class of the object espected.

        Return None if the object is not found or if it is not the right class.
        """
        if (schema is None) != (name is None):
            raise TypeError("you should either specify both schema and name or none")

        if schema is not None:
            rv = self._by_name.get((schema, name))
        elif oid:
            rv = self._by_oid.get(oid)
        else:
            raise TypeError("you should specify either schema/name or oid")

        # Return the object only if the right class
        if rv and cls is not None:
            if not isinstance(rv, cls):
                rv = None

        return rv

    def __iter__(self):
        yield from self._objects

    def objects(self, cls):
        """Return the objects of a certain class, in the order they were added."""
        return [obj for obj in self if isinstance(obj, cls)]

    def add_constraint(self, table, constraint):
        self.constraints.setdefault(table.oid, []).append(constraint)

    def set_sequence_owner(self, seq, column):
        if seq.oid in self.sequence_owners:
            raise ValueError("the sequence %s has already an owner" % seq)
        self.sequence_owners[seq.oid] = column
