"""
Definitions of the objects to restore after the data, such as indexes.

The database generates the complete definition of these objects, so there
is little more to do than to collect them. They don't depend on each other,
so they are emitted in alphabetical order, which makes dumps of the same
database comparable.

This file is part of pg_metadump.
"""

import logging

from .predata import object_metadata
from .metadata import quote_literal

logger = logging.getLogger("metadump.postdata")


class CommentOptions:
    """
    Which objects kinds should have their comment dumped with the definition.
    """

    __slots__ = ("rules", "triggers")

    def __init__(self, rules=False, triggers=False):
        self.rules = rules
        self.triggers = triggers

    @classmethod
    def from_config(cls, cfg):
        cfg = cfg or {}
        return cls(
            rules=bool(cfg.get("rules", False)),
            triggers=bool(cfg.get("triggers", False)),
        )


def create_index(index, metadata=None):
    return "\n\n%s;%s" % (
        index.definition,
        object_metadata(metadata, str(index), index.keyword),
    )


def create_rule(rule, with_comment=False):
    # the rule definition is already terminated by a semicolon
    rv = "\n\n%s" % rule.definition
    if with_comment:
        rv += _comment_on(rule)
    return rv


def create_trigger(trigger, with_comment=False):
    rv = "\n\n%s;" % trigger.definition
    if with_comment:
        rv += _comment_on(trigger)
    return rv


def _comment_on(obj):
    if not obj.comment:
        return ""
    return "\nCOMMENT ON %s %s ON %s IS %s;" % (
        obj.keyword,
        obj,
        obj.table,
        quote_literal(obj.comment),
    )


def get_postdata_statements(
    indexes=(), rules=(), triggers=(), metadata=None, comments=None
):
    """
    Return the list of statements to create indexes, rules, triggers.

    *metadata* maps the indexes oids to their `ObjectMetadata`.
    """
    if metadata is None:
        metadata = {}
    if comments is None:
        comments = CommentOptions()

    rv = []
    for index in indexes:
        rv.append(create_index(index, metadata.get(index.oid)))
    for rule in rules:
        rv.append(create_rule(rule, with_comment=comments.rules))
    for trigger in triggers:
        rv.append(create_trigger(trigger, with_comment=comments.triggers))

    return rv


def aggregate(statements):
    """
    Return the statements sorted and merged into a single text.

    Python strings sort by code point, which is the same order of their UTF-8
    encoding, so the result doesn't depend on the locale.
    """
    return "".join(stmt + "\n" for stmt in sorted(statements))
