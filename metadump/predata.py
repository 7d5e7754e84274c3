"""
Definitions of the objects to restore before the data.

Every function returns the text of the statements to create an object;
the text of each object starts with a blank line, so that the output can be
just concatenated.

This file is part of pg_metadump.
"""

import logging

from . import consts
from .dbobjects import DbObject, Function
from .exceptions import DumpError
from .metadata import quote_literal

logger = logging.getLogger("metadump.predata")


def object_metadata(metadata, name, kind):
    """
    Return the comment, owner, privileges statements of an object.

    *metadata* may be None, which means the object has nothing to say.
    """
    if metadata is None:
        return ""
    return metadata.get_statements(name, kind)


def create_schema(schema, metadata=None):
    rv = ["\n"]
    # public is created with the database
    if schema.name != "public":
        rv.append("\nCREATE SCHEMA %s;" % schema)
    rv.append(object_metadata(metadata, str(schema), schema.keyword))
    return "".join(rv)


def create_sequence(seq, owner_column=None, metadata=None):
    """
    Return the definition of a sequence and the statement to restore its state.

    *owner_column* is the name of the column owning the sequence, already
    escaped, or None.

    A max/min value at the boundary of the range in the direction of the
    increment is the default, so it is omitted.
    """
    fqn = str(seq)
    rv = ["\n\nCREATE SEQUENCE %s\n" % fqn]
    if not seq.is_called:
        rv.append("\tSTART WITH %d\n" % seq.last_value)
    rv.append("\tINCREMENT BY %d\n" % seq.increment)

    if (seq.max_value == consts.SEQ_MAXVALUE and seq.increment > 0) or (
        seq.max_value == -1 and seq.increment < 0
    ):
        rv.append("\tNO MAXVALUE\n")
    else:
        rv.append("\tMAXVALUE %d\n" % seq.max_value)

    if (seq.min_value == consts.SEQ_MINVALUE and seq.increment < 0) or (
        seq.min_value == 1 and seq.increment > 0
    ):
        rv.append("\tNO MINVALUE\n")
    else:
        rv.append("\tMINVALUE %d\n" % seq.min_value)

    rv.append("\tCACHE %d" % seq.cache_value)
    if seq.is_cycled:
        rv.append("\n\tCYCLE")
    rv.append(";")

    rv.append(
        "\n\nSELECT pg_catalog.setval(%s, %d, %s);\n"
        % (quote_literal(fqn), seq.last_value, "true" if seq.is_called else "false")
    )

    if owner_column:
        rv.append("\n\nALTER SEQUENCE %s OWNED BY %s;\n" % (fqn, owner_column))

    rv.append(object_metadata(metadata, fqn, seq.keyword))
    return "".join(rv)


def create_language(lang, functions, metadata=None):
    """
    Return the definition of a procedural language.

    The support functions are given to the owner of the language.
    *functions* maps function oids to `FunctionInfo`.
    """
    name = str(lang)
    owner = DbObject.escape_idents(lang.owner) if lang.owner else None
    rv = [
        "\n\nCREATE %sPROCEDURAL LANGUAGE %s;"
        % ("TRUSTED " if lang.trusted else "", name)
    ]
    for oid in (lang.handler, lang.inline, lang.validator):
        if not oid:
            continue
        func = _get_function(functions, oid, "language %s" % name)
        if owner is None:
            logger.debug("language %s has no owner for function %r", name, func)
            continue
        rv.append(
            "\nALTER FUNCTION %s(%s) OWNER TO %s;"
            % (func.qualified_name, func.arguments, owner)
        )

    rv.append(object_metadata(metadata, name, lang.keyword))
    rv.append("\n")
    return "".join(rv)


def create_view(view, metadata=None):
    fqn = str(view)
    return "\n\nCREATE VIEW %s AS %s\n%s" % (
        fqn,
        view.definition,
        object_metadata(metadata, fqn, view.keyword),
    )


def column_definition(col):
    rv = ["\t%s %s" % (col, col.type)]
    if col.generated:
        rv.append(" GENERATED ALWAYS AS (%s) STORED" % col.generated)
    if col.identity:
        rv.append(
            " GENERATED %s AS IDENTITY"
            % ("ALWAYS" if col.identity == "a" else "BY DEFAULT")
        )
    if col.not_null:
        rv.append(" NOT NULL")
    return "".join(rv)


def create_table(table, metadata=None):
    """
    Return the definition of a table, its comments, owner and privileges.

    The columns defaults are not part of the definition: they may refer to
    sequences, which are created after the tables they belong to. See
    `column_defaults()`.
    """
    fqn = str(table)
    if table.partition_of:
        rv = [
            "\n\nCREATE TABLE %s PARTITION OF %s %s"
            % (fqn, table.partition_of, table.partition_bound)
        ]
    else:
        cols = ",\n".join(column_definition(col) for col in table.columns)
        rv = ["\n\nCREATE TABLE %s (\n%s\n)" % (fqn, cols)]
        if table.inherits:
            rv.append(" INHERITS (%s)" % ", ".join(table.inherits))

    if table.partition_key:
        rv.append(" PARTITION BY %s" % table.partition_key)
    if table.storage_options:
        rv.append(" WITH (%s)" % table.storage_options)
    if table.distribution:
        rv.append(" %s" % table.distribution)
    rv.append(";\n")

    if metadata is not None:
        rv.append(metadata.get_comment_statement(fqn, table.keyword))
    for col in table.columns:
        if col.comment:
            rv.append(
                "\n\nCOMMENT ON COLUMN %s.%s IS %s;\n"
                % (fqn, col, quote_literal(col.comment))
            )
    if metadata is not None:
        rv.append(metadata.get_owner_statement(fqn, table.keyword))
        rv.append(metadata.get_privileges_statements(fqn, table.keyword))

    return "".join(rv)


def column_defaults(tables):
    """
    Return the statements to set the default of the columns of *tables*.
    """
    rv = []
    for table in tables:
        for col in table.columns:
            if col.default is None:
                continue
            rv.append(
                "\n\nALTER TABLE ONLY %s ALTER COLUMN %s SET DEFAULT %s;\n"
                % (table, col, col.default)
            )
    return "".join(rv)


VOLATILITY = {"i": " IMMUTABLE", "s": " STABLE"}
PARALLEL = {"s": " PARALLEL SAFE", "r": " PARALLEL RESTRICTED"}

# Settings whose value is a list of names, not to be quoted as a whole
LIST_SETTINGS = frozenset(["search_path", "temp_tablespaces"])


def dollar_quote(s):
    """
    Quote a string between dollars, using a tag not found in the string.
    """
    tag = "$$"
    i = 0
    while tag in s:
        tag = "$_%s$" % (i or "")
        i += 1
    return "%s%s%s" % (tag, s, tag)


def create_function(func, metadata=None):
    """
    Return the definition of a function, then its comment, owner, privileges.

    Volatile, parallel unsafe, and other default attributes are omitted.
    """
    rv = [
        "\n\nCREATE FUNCTION %s(%s) RETURNS %s AS"
        % (func, func.arguments, func.result_type)
    ]
    if func.binary_path:
        rv.append(
            "\n%s, %s" % (quote_literal(func.binary_path), quote_literal(func.body))
        )
    else:
        rv.append("\n%s" % dollar_quote(func.body))

    rv.append("\nLANGUAGE %s" % DbObject.escape_idents(func.language))
    rv.append(VOLATILITY.get(func.volatility, ""))
    if func.is_strict:
        rv.append(" STRICT")
    if func.is_security_definer:
        rv.append(" SECURITY DEFINER")
    rv.append(PARALLEL.get(func.parallel, ""))
    if func.cost != Function.default_cost(func.language):
        rv.append(" COST %g" % func.cost)
    if func.returns_set and func.rows not in (0, 1000):
        rv.append(" ROWS %g" % func.rows)

    for setting in func.config:
        name, _, value = setting.partition("=")
        if name not in LIST_SETTINGS:
            value = quote_literal(value)
        rv.append("\nSET %s TO %s" % (name, value))
    rv.append(";\n")

    rv.append(object_metadata(metadata, func.signature, func.keyword))
    return "".join(rv)


def is_user_defined_protocol(protocol, functions):
    """
    Return True if at least one of the functions of a protocol is not internal.
    """
    for oid in protocol.functions:
        func = functions.get(oid)
        if func is not None and not func.is_internal:
            return True
    return False


def create_protocol(protocol, functions):
    """
    Return the definition of an external protocol.

    Return an empty string if the protocol is implemented only by internal
    functions: it comes with the database.
    """
    if not is_user_defined_protocol(protocol, functions):
        logger.debug("skipping internal protocol %s", protocol)
        return ""

    name = str(protocol)
    args = []
    for label, oid in zip(
        ("readfunc", "writefunc", "validatorfunc"), protocol.functions
    ):
        if oid:
            func = _get_function(functions, oid, "protocol %s" % name)
            args.append("%s = %s" % (label, func.qualified_name))

    rv = [
        "\n\nCREATE %sPROTOCOL %s (%s);"
        % ("TRUSTED " if protocol.trusted else "", name, ", ".join(args))
    ]
    if protocol.owner:
        rv.append(
            "\n\nALTER PROTOCOL %s OWNER TO %s;\n"
            % (name, DbObject.escape_idents(protocol.owner))
        )
    return "".join(rv)


def _get_function(functions, oid, referrer):
    try:
        return functions[oid]
    except KeyError:
        raise DumpError("%s refers to the unknown function %s" % (referrer, oid))


def process_constraints(table, constraints):
    """
    Return the statements to create the constraints of a table.

    Return a pair of lists: the statements of the unique, primary key, check
    constraints, and the statements of the foreign keys.
    """
    cons = []
    fkcons = []
    for con in constraints:
        stmt = "\n\nALTER TABLE ONLY %s ADD CONSTRAINT %s %s;" % (
            table,
            con,
            con.definition,
        )
        if con.comment:
            stmt += "\n\nCOMMENT ON CONSTRAINT %s ON %s IS %s;" % (
                con,
                table,
                quote_literal(con.comment),
            )

        if con.is_foreign_key:
            fkcons.append(stmt)
        else:
            cons.append(stmt)

    return cons, fkcons


def construct_constraints_for_all_tables(tables, constraints):
    """
    Return the constraints statements of all the *tables*.

    *constraints* maps table oids to their list of `Constraint`. The foreign
    keys are returned separately so that they can be created after all the
    keys they may refer to.
    """
    all_cons = []
    all_fkcons = []
    for table in tables:
        cons, fkcons = process_constraints(table, constraints.get(table.oid, ()))
        all_cons.extend(cons)
        all_fkcons.extend(fkcons)

    return all_cons, all_fkcons


def constraint_statements(cons, fkcons):
    """
    Return the text to create the constraints, foreign keys last.
    """
    rv = []
    for stmt in sorted(cons):
        rv.append(stmt + "\n")
    for stmt in sorted(fkcons):
        rv.append(stmt + "\n")
    return "".join(rv)
