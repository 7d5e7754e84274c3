"""
Program constants.

This file is part of pg_metadump.
"""

VERSION = "0.1.dev0"
PROJECT_URL = "https://github.com/pg-metadump/pg_metadump"


KIND_SCHEMA = "schema"
KIND_TABLE = "table"
KIND_SEQUENCE = "sequence"
KIND_VIEW = "view"
KIND_FUNCTION = "function"
KIND_LANGUAGE = "procedural language"
KIND_PROTOCOL = "external protocol"
KIND_INDEX = "index"
KIND_RULE = "rule"
KIND_TRIGGER = "trigger"

# contype values: https://www.postgresql.org/docs/current/catalog-pg-constraint.html
CON_UNIQUE = "u"
CON_PRIMARY_KEY = "p"
CON_FOREIGN_KEY = "f"
CON_CHECK = "c"

# Boundaries of a sequence range: values at these boundaries mean "unbounded"
# SEQ_MAXVALUE and SEQ_MINVALUE in include/commands/sequence.h
INT64_MAX = 9223372036854775807
INT64_MIN = -9223372036854775808
SEQ_MAXVALUE = INT64_MAX
SEQ_MINVALUE = INT64_MIN + 1

# Privileges in the order they are spelled in a GRANT statement
PRIVILEGES = (
    "select",
    "insert",
    "update",
    "delete",
    "truncate",
    "references",
    "trigger",
    "usage",
    "execute",
    "create",
    "temporary",
    "connect",
)

# aclitem letters: https://www.postgresql.org/docs/current/ddl-priv.html
ACL_LETTERS = {
    "r": "select",
    "a": "insert",
    "w": "update",
    "d": "delete",
    "D": "truncate",
    "x": "references",
    "t": "trigger",
    "U": "usage",
    "X": "execute",
    "C": "create",
    "T": "temporary",
    "c": "connect",
}

_TABLE_PRIVILEGES = (
    "select",
    "insert",
    "update",
    "delete",
    "truncate",
    "references",
    "trigger",
)

# The privileges an owner gets on an object of a SQL kind.
DEFAULT_PRIVILEGES = {
    "TABLE": _TABLE_PRIVILEGES,
    "VIEW": _TABLE_PRIVILEGES,
    "SEQUENCE": ("select", "update", "usage"),
    "SCHEMA": ("usage", "create"),
    "LANGUAGE": ("usage",),
    "FUNCTION": ("execute",),
    "DATABASE": ("create", "temporary", "connect"),
    "PROTOCOL": ("select", "insert"),
    "INDEX": (),
}

# Keyword to use in GRANT/REVOKE in place of the object kind
PRIVILEGE_KEYWORDS = {"VIEW": ""}

# Reserved words which can't be used as identifiers without quotes
# https://www.postgresql.org/docs/current/sql-keywords-appendix.html
RESERVED_KEYWORDS = frozenset(
    """
    all analyse analyze and any array as asc asymmetric authorization binary
    both case cast check collate collation column concurrently constraint
    create cross current_catalog current_date current_role current_schema
    current_time current_timestamp current_user default deferrable desc
    distinct do else end except false fetch for foreign freeze from full grant
    group having ilike in initially inner intersect into is isnull join
    lateral leading left like limit localtime localtimestamp natural not
    notnull null offset on only or order outer overlaps placing primary
    references returning right select session_user similar some symmetric
    system_user table tablesample then to trailing true union unique user
    using variadic verbose when where window with
    """.split()
)
