#!/usr/bin/env python3

"""
Object to perform a metadata dump.

This file is part of pg_metadump.
"""

import re
import logging

from . import predata
from . import postdata
from .config import load_yaml, get_config_errors
from .dbobjects import (
    ExternalProtocol,
    Function,
    Index,
    ProceduralLanguage,
    Relation,
    Rule,
    Schema,
    SimpleDefinition,
    Sequence,
    Table,
    Trigger,
    View,
)
from .exceptions import ConfigError, CycleError, DumpError
from .graph import sort_objects

logger = logging.getLogger("metadump.dumper")


class SchemaFilter:
    """
    Decide if the objects in a schema should be dumped.

    Both the *include* and *exclude* arguments can be a list of names, a
    regular expression, or None, meaning no restriction.
    """

    def __init__(self, include=None, exclude=None):
        self.include = self._matcher(include)
        self.exclude = self._matcher(exclude)

    def __call__(self, name):
        if self.include is not None and not self.include(name):
            return False
        if self.exclude is not None and self.exclude(name):
            return False
        return True

    def _matcher(self, names):
        if names is None:
            return None
        if isinstance(names, str):
            return re.compile(names, re.VERBOSE).match
        names = frozenset(names)
        return names.__contains__


class Dumper:
    """
    The logic of a metadata dump.
    """

    def __init__(self, reader, writer):
        self.reader = reader
        self.writer = writer
        self.schema_filter = SchemaFilter()
        self.comments = postdata.CommentOptions()

        # The plan of the dump: (object, text) pairs and the text of the
        # constraints and of the postdata section
        self.predata = []
        self.constraints = ""
        self.postdata = ""

    @property
    def catalog(self):
        return self.reader.catalog

    def clear(self):
        self.catalog.clear()
        self.schema_filter = SchemaFilter()
        self.comments = postdata.CommentOptions()
        self._clear_plan()

    def _clear_plan(self):
        del self.predata[:]
        self.constraints = ""
        self.postdata = ""

    def add_config(self, cfg):
        """
        Add a new config structure to the dumper

        The structure is what parsed by a yaml file. Options not specified
        keep the value set by a previous config.

        You can pass a string too, which will be parsed from yaml.
        """
        if isinstance(cfg, str):
            # This case is mostly used for testing, so not really caring about
            # returning all the errors.
            cfg = load_yaml(cfg) or {}
            errors = get_config_errors(cfg)
            if errors:
                raise ConfigError(errors[0])

        if "schemas" in cfg or "exclude_schemas" in cfg:
            self.schema_filter = SchemaFilter(
                include=cfg.get("schemas"), exclude=cfg.get("exclude_schemas")
            )
        if "comments" in cfg:
            self.comments = postdata.CommentOptions.from_config(cfg["comments"])

    def perform_dump(self):
        """
        Perform the dump of a database.

        Read the catalog from the reader, generate the statements, use the
        writer to emit them.
        """
        self.plan_dump()
        self.run_dump()

    def plan_dump(self):
        """
        Generate the text of the objects to dump.

        This step doesn't need a writer.
        """
        self._clear_plan()

        for obj in self.get_predata_objects():
            meth = getattr(self, "_make_" + obj.kind.replace(" ", "_"), None)
            if meth is None:
                raise DumpError("don't know how to dump objects of kind %s" % obj.kind)
            self.predata.append((obj, meth(obj)))

        tables = [t for t in self.catalog.objects(Table) if self.is_dumped(t)]
        cons, fkcons = predata.construct_constraints_for_all_tables(
            tables, self.catalog.constraints
        )
        self.constraints = predata.column_defaults(tables)
        self.constraints += predata.constraint_statements(cons, fkcons)

        stmts = postdata.get_postdata_statements(
            indexes=self._dumped(Index),
            rules=self._dumped(Rule),
            triggers=self._dumped(Trigger),
            metadata=self.catalog.metadata,
            comments=self.comments,
        )
        self.postdata = postdata.aggregate(stmts)

    def run_dump(self):
        """
        Perform a dump writing the statements previously planned.
        """
        if self.writer is None:
            raise ValueError("no writer set")

        self.writer.begin_dump()
        for obj, text in self.predata:
            self.writer.write_predata(obj, text)
        self.writer.write_constraints(self.constraints)
        self.writer.write_postdata(self.postdata)
        self.writer.end_dump()

    def get_predata_objects(self):
        """
        Return the objects to create before the data, in creation order.
        """
        rv = []
        for cls in (Schema, ProceduralLanguage, Function):
            rv.extend(self._dumped(cls))

        # The sequences follow the tables, which their OWNED BY refers to.
        rv.extend(self._sorted(Table, self.catalog.table_dependencies))
        for cls in (Sequence, ExternalProtocol):
            rv.extend(self._dumped(cls))

        rv.extend(self._sorted(View, self.catalog.view_dependencies))
        return rv

    def _sorted(self, cls, dependencies):
        try:
            return sort_objects(self._dumped(cls), dependencies)
        except CycleError as e:
            for obj in e.nodes:
                logger.error("%s %s is part of a dependency cycle", obj.kind, obj)
            raise

    def is_dumped(self, obj):
        if isinstance(obj, Schema):
            return self.schema_filter(obj.name)
        elif isinstance(obj, (Relation, Function)):
            return self.schema_filter(obj.schema)
        elif isinstance(obj, SimpleDefinition):
            return self.schema_filter(obj.owning_schema)
        else:
            return True

    def _dumped(self, cls):
        rv = []
        for obj in self.catalog.objects(cls):
            if self.is_dumped(obj):
                rv.append(obj)
            else:
                logger.debug("%s %s excluded by configuration", obj.kind, obj)
        return rv

    #
    # Methods to generate the definition of the predata objects
    # (dynamic dispatch from `plan_dump()`)
    #

    def _make_schema(self, obj):
        return predata.create_schema(obj, self.catalog.metadata.get(obj.oid))

    def _make_function(self, obj):
        return predata.create_function(obj, self.catalog.metadata.get(obj.oid))

    def _make_table(self, obj):
        return predata.create_table(obj, self.catalog.metadata.get(obj.oid))

    def _make_procedural_language(self, obj):
        return predata.create_language(
            obj, self.catalog.functions, self.catalog.metadata.get(obj.oid)
        )

    def _make_sequence(self, obj):
        return predata.create_sequence(
            obj,
            owner_column=self.catalog.sequence_owners.get(obj.oid),
            metadata=self.catalog.metadata.get(obj.oid),
        )

    def _make_external_protocol(self, obj):
        return predata.create_protocol(obj, self.catalog.functions)

    def _make_view(self, obj):
        return predata.create_view(obj, self.catalog.metadata.get(obj.oid))
