"""
Representation of catalog objects to handle by the program.

This file is part of pg_metadump.
"""


import re

from psycopg import sql

from . import consts


class DbObject:
    """
    An object in a database catalog
    """

    __slots__ = ("oid", "name")

    _kinds = {}

    kind = None

    # The keyword used to refer to the object in COMMENT/ALTER/GRANT
    keyword = None

    def __init__(self, oid, name):
        self.oid = oid
        self.name = name

    @classmethod
    def from_kind(cls, kind, *args, **kwargs):
        if kind not in cls._kinds:
            raise ValueError("unknown db object kind: %s" % kind)
        return cls._kinds[kind](*args, **kwargs)

    def __repr__(self):
        return "<%s %s at 0x%x>" % (self.__class__.__name__, self, id(self))

    def __str__(self):
        return self.escape_idents(self.name)

    @property
    def ident(self):
        """The object name as an Identifier"""
        return sql.Identifier(self.name)

    @classmethod
    def escape_idents(self, *args):
        """
        Convert tokens into dot-separated string to be safety merged to a query

        Names made of lowercase letters, digits and underscores are left
        alone, unless they are reserved keywords; everything else is wrapped
        in double quotes. Unlike `ident` it doesn't require a connection, so
        it can be used to generate the text of the dump.
        """
        rv = []
        for arg in args:
            if (
                re.match(r"^[a-z_][a-z0-9_$]*$", arg)
                and arg not in consts.RESERVED_KEYWORDS
            ):
                rv.append(arg)
            else:
                arg = arg.replace('"', '""')
                rv.append('"%s"' % arg)

        return ".".join(rv)

    @staticmethod
    def register(kind, keyword=None):
        """
        Decorator to allow a class to be instantiated by `from_kind()`.
        """

        def register_(cls):
            if kind in DbObject._kinds:
                raise ValueError("the kind %s is already associated to a class" % kind)
            DbObject._kinds[kind] = cls
            cls.kind = kind
            cls.keyword = keyword
            return cls

        return register_


class Relation(DbObject):
    """
    An object living in a schema, uniquely identified by schema and name.
    """

    __slots__ = ("schema_oid", "schema")

    def __init__(self, oid, schema, name, schema_oid=None):
        super().__init__(oid, name)
        self.schema = schema
        self.schema_oid = schema_oid

    def __str__(self):
        return self.escape_idents(self.schema, self.name)

    @property
    def ident(self):
        return sql.Identifier(self.schema, self.name)


@DbObject.register(consts.KIND_SCHEMA, "SCHEMA")
class Schema(DbObject):
    """A schema in a database."""


@DbObject.register(consts.KIND_TABLE, "TABLE")
class Table(Relation):
    """
    A table in a database.

    A partition has `partition_of` set to the escaped name of its parent and
    carries no column, as it gets them from the parent. `inherits` lists the
    escaped names of the parents of a table using inheritance.
    """

    __slots__ = (
        "columns",
        "inherits",
        "partition_key",
        "partition_of",
        "partition_bound",
        "storage_options",
        "distribution",
    )

    def __init__(
        self,
        oid,
        schema,
        name,
        schema_oid=None,
        columns=(),
        inherits=(),
        partition_key="",
        partition_of="",
        partition_bound="",
        storage_options="",
        distribution="",
    ):
        super().__init__(oid, schema, name, schema_oid=schema_oid)
        self.columns = list(columns)
        self.inherits = list(inherits)
        self.partition_key = partition_key
        self.partition_of = partition_of
        self.partition_bound = partition_bound
        self.storage_options = storage_options
        self.distribution = distribution


class Column:
    """
    A column of a table.

    `identity` is the `attidentity` of the column: "a" (always), "d" (by
    default) or empty. `generated` is the expression of a stored generated
    column, in which case `default` is not set.
    """

    __slots__ = (
        "name",
        "type",
        "not_null",
        "default",
        "identity",
        "generated",
        "comment",
    )

    def __init__(
        self,
        name,
        type,
        not_null=False,
        default=None,
        identity="",
        generated="",
        comment="",
    ):
        self.name = name
        self.type = type
        self.not_null = not_null
        self.default = default
        self.identity = identity
        self.generated = generated
        self.comment = comment

    def __repr__(self):
        return "<%s %s at 0x%x>" % (self.__class__.__name__, self.name, id(self))

    def __str__(self):
        return DbObject.escape_idents(self.name)


@DbObject.register(consts.KIND_SEQUENCE, "SEQUENCE")
class Sequence(Relation):
    """A sequence in a database, with its current state."""

    __slots__ = (
        "last_value",
        "increment",
        "max_value",
        "min_value",
        "cache_value",
        "is_cycled",
        "is_called",
    )

    def __init__(
        self,
        oid,
        schema,
        name,
        schema_oid=None,
        last_value=1,
        increment=1,
        max_value=consts.SEQ_MAXVALUE,
        min_value=1,
        cache_value=1,
        is_cycled=False,
        is_called=False,
    ):
        super().__init__(oid, schema, name, schema_oid=schema_oid)
        self.last_value = last_value
        self.increment = increment
        self.max_value = max_value
        self.min_value = min_value
        self.cache_value = cache_value
        self.is_cycled = is_cycled
        self.is_called = is_called


@DbObject.register(consts.KIND_VIEW, "VIEW")
class View(Relation):
    """A view in a database."""

    __slots__ = ("definition",)

    def __init__(self, oid, schema, name, schema_oid=None, definition=""):
        super().__init__(oid, schema, name, schema_oid=schema_oid)
        self.definition = definition


@DbObject.register(consts.KIND_FUNCTION, "FUNCTION")
class Function(DbObject):
    """
    A user-defined function.

    Functions can be overloaded, so they are not relations: the name alone
    doesn't identify them. `signature` does.

    `volatility` and `parallel` are the `provolatile` and `proparallel`
    values; `config` is a list of "name=value" settings.
    """

    __slots__ = (
        "schema",
        "schema_oid",
        "arguments",
        "identity_arguments",
        "result_type",
        "returns_set",
        "body",
        "binary_path",
        "language",
        "volatility",
        "is_strict",
        "is_security_definer",
        "parallel",
        "cost",
        "rows",
        "config",
    )

    def __init__(
        self,
        oid,
        schema,
        name,
        schema_oid=None,
        arguments="",
        identity_arguments=None,
        result_type="void",
        returns_set=False,
        body="",
        binary_path=None,
        language="sql",
        volatility="v",
        is_strict=False,
        is_security_definer=False,
        parallel="u",
        cost=None,
        rows=0,
        config=(),
    ):
        super().__init__(oid, name)
        self.schema = schema
        self.schema_oid = schema_oid
        self.arguments = arguments
        if identity_arguments is None:
            identity_arguments = arguments
        self.identity_arguments = identity_arguments
        self.result_type = result_type
        self.returns_set = returns_set
        self.body = body
        self.binary_path = binary_path
        self.language = language
        self.volatility = volatility
        self.is_strict = is_strict
        self.is_security_definer = is_security_definer
        self.parallel = parallel
        if cost is None:
            cost = self.default_cost(language)
        self.cost = cost
        self.rows = rows
        self.config = list(config)

    def __str__(self):
        return self.escape_idents(self.schema, self.name)

    @property
    def signature(self):
        """The name of the function as used in COMMENT, ALTER, GRANT."""
        return "%s(%s)" % (self, self.identity_arguments)

    @staticmethod
    def default_cost(language):
        # see CREATE FUNCTION docs
        return 1 if language in ("c", "internal") else 100


@DbObject.register(consts.KIND_LANGUAGE, "LANGUAGE")
class ProceduralLanguage(DbObject):
    """
    A procedural language.

    `handler`, `inline` and `validator` are function oids, 0 if not set.
    """

    __slots__ = ("owner", "trusted", "handler", "inline", "validator")

    def __init__(
        self, oid, name, owner="", trusted=False, handler=0, inline=0, validator=0
    ):
        super().__init__(oid, name)
        self.owner = owner
        self.trusted = trusted
        self.handler = handler
        self.inline = inline
        self.validator = validator


@DbObject.register(consts.KIND_PROTOCOL, "PROTOCOL")
class ExternalProtocol(DbObject):
    """
    A Greenplum external protocol.

    The functions are oids, 0 if not set.
    """

    __slots__ = (
        "owner",
        "trusted",
        "read_function",
        "write_function",
        "validator",
    )

    def __init__(
        self,
        oid,
        name,
        owner="",
        trusted=False,
        read_function=0,
        write_function=0,
        validator=0,
    ):
        super().__init__(oid, name)
        self.owner = owner
        self.trusted = trusted
        self.read_function = read_function
        self.write_function = write_function
        self.validator = validator

    @property
    def functions(self):
        return (self.read_function, self.write_function, self.validator)


class SimpleDefinition(DbObject):
    """
    An object whose definition is generated complete by the database.
    """

    __slots__ = ("owning_schema", "owning_table", "definition", "comment")

    def __init__(
        self, oid, name, owning_schema, owning_table, definition, comment=""
    ):
        super().__init__(oid, name)
        self.owning_schema = owning_schema
        self.owning_table = owning_table
        self.definition = definition
        self.comment = comment

    @property
    def table(self):
        """The name of the owning table, schema-qualified and escaped."""
        return self.escape_idents(self.owning_schema, self.owning_table)


@DbObject.register(consts.KIND_INDEX, "INDEX")
class Index(SimpleDefinition):
    """An index not implementing a constraint."""

    def __str__(self):
        return self.escape_idents(self.owning_schema, self.name)


@DbObject.register(consts.KIND_RULE, "RULE")
class Rule(SimpleDefinition):
    """A rewrite rule on a table."""


@DbObject.register(consts.KIND_TRIGGER, "TRIGGER")
class Trigger(SimpleDefinition):
    """A user-defined trigger on a table."""


class Constraint:
    __slots__ = ("name", "type", "definition", "comment")

    def __init__(self, name, type, definition, comment=""):
        self.name = name
        self.type = type
        self.definition = definition
        self.comment = comment

    def __repr__(self):
        return "<%s %s at 0x%x>" % (self.__class__.__name__, self.name, id(self))

    def __str__(self):
        return DbObject.escape_idents(self.name)

    @property
    def is_foreign_key(self):
        return self.type == consts.CON_FOREIGN_KEY


class FunctionInfo:
    """
    What is needed to refer to a function from another object definition.
    """

    __slots__ = ("qualified_name", "arguments", "is_internal")

    def __init__(self, qualified_name, arguments="", is_internal=False):
        self.qualified_name = qualified_name
        self.arguments = arguments
        self.is_internal = is_internal

    def __repr__(self):
        return "<%s %s(%s) at 0x%x>" % (
            self.__class__.__name__,
            self.qualified_name,
            self.arguments,
            id(self),
        )
