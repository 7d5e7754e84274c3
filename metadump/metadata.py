"""
Ownership, comments and privileges of catalog objects.

This file is part of pg_metadump.
"""

import logging

from . import consts
from .dbobjects import DbObject

logger = logging.getLogger("metadump.metadata")


class ACL:
    """
    The privileges a grantee holds on an object.

    An empty grantee means PUBLIC.
    """

    __slots__ = ("grantee",) + consts.PRIVILEGES

    def __init__(self, grantee="", **privileges):
        self.grantee = grantee
        for priv in consts.PRIVILEGES:
            setattr(self, priv, bool(privileges.pop(priv, False)))
        if privileges:
            raise TypeError("unknown privileges: %s" % ", ".join(sorted(privileges)))

    @classmethod
    def default_for(cls, grantee, kind):
        """
        Return the ACL an owner gets on a new object of SQL kind *kind*.
        """
        return cls(grantee, **{priv: True for priv in consts.DEFAULT_PRIVILEGES[kind]})

    def without(self, *privileges):
        """Return a copy of the ACL missing *privileges*."""
        rv = ACL(self.grantee, **{priv: getattr(self, priv) for priv in consts.PRIVILEGES})
        for priv in privileges:
            setattr(rv, priv.lower(), False)
        return rv

    def granted(self, kind):
        """
        Return the privileges held among the ones applicable to *kind*.
        """
        return [p for p in consts.DEFAULT_PRIVILEGES[kind] if getattr(self, p)]

    @property
    def grantee_name(self):
        return DbObject.escape_idents(self.grantee) if self.grantee else "PUBLIC"

    def __eq__(self, other):
        if not isinstance(other, ACL):
            return NotImplemented
        return all(getattr(self, a) == getattr(other, a) for a in self.__slots__)

    def __repr__(self):
        privs = [p for p in consts.PRIVILEGES if getattr(self, p)]
        return "<%s %s: %s>" % (
            self.__class__.__name__,
            self.grantee_name,
            ",".join(privs) or "-",
        )


class ObjectMetadata:
    """
    Owner, comment and privileges attached to a catalog object.
    """

    __slots__ = ("privileges", "owner", "comment")

    def __init__(self, privileges=None, owner="", comment=""):
        self.privileges = list(privileges or ())
        self.owner = owner or ""
        self.comment = comment or ""

    def __repr__(self):
        return "<%s owner=%r at 0x%x>" % (
            self.__class__.__name__,
            self.owner,
            id(self),
        )

    def get_comment_statement(self, name, kind):
        if not self.comment:
            return ""
        return "\n\nCOMMENT ON %s %s IS %s;\n" % (
            kind,
            name,
            quote_literal(self.comment),
        )

    def get_owner_statement(self, name, kind):
        if not self.owner:
            return ""
        return "\n\nALTER %s %s OWNER TO %s;\n" % (
            kind,
            name,
            DbObject.escape_idents(self.owner),
        )

    def get_privileges_statements(self, name, kind):
        """
        Return the statements to reproduce the object privileges.

        All the privileges are revoked from PUBLIC and from the owner, then
        every grantee receives back what it holds, PUBLIC last.
        """
        if not self.privileges or not consts.DEFAULT_PRIVILEGES[kind]:
            return ""

        target = consts.PRIVILEGE_KEYWORDS.get(kind, kind)
        target = "%s %s" % (target, name) if target else name

        lines = ["REVOKE ALL ON %s FROM PUBLIC;" % target]
        if self.owner:
            lines.append(
                "REVOKE ALL ON %s FROM %s;"
                % (target, DbObject.escape_idents(self.owner))
            )

        acls = [acl for acl in self.privileges if acl.grantee]
        acls.extend(acl for acl in self.privileges if not acl.grantee)
        for acl in acls:
            granted = acl.granted(kind)
            if not granted:
                continue
            if len(granted) == len(consts.DEFAULT_PRIVILEGES[kind]):
                verbs = "ALL"
            else:
                verbs = ",".join(p.upper() for p in granted)
            lines.append("GRANT %s ON %s TO %s;" % (verbs, target, acl.grantee_name))

        return "\n\n%s\n" % "\n".join(lines)

    def get_statements(self, name, kind):
        """
        Return comment, owner and privileges statements of an object.

        Each block is omitted if the metadata is not set.
        """
        return "".join(
            (
                self.get_comment_statement(name, kind),
                self.get_owner_statement(name, kind),
                self.get_privileges_statements(name, kind),
            )
        )


def quote_literal(s):
    """Return *s* as a SQL string literal."""
    return "'%s'" % s.replace("'", "''")


def parse_acl(item):
    """
    Parse an ``aclitem`` in text format into an `ACL`.

    The format is ``grantee=privileges/grantor``; an empty grantee is PUBLIC.
    Return None if the item cannot be parsed.
    """
    grantee, sep, rest = _split_grantee(item)
    if not sep:
        logger.warning("can't parse acl item: %r", item)
        return None

    privs, _, _ = rest.partition("/")
    rv = ACL(grantee)
    for c in privs:
        if c == "*":
            # grant option: not reproduced
            continue
        try:
            setattr(rv, consts.ACL_LETTERS[c], True)
        except KeyError:
            logger.warning("unknown privilege %r in acl item: %r", c, item)

    return rv


def parse_acls(items):
    """
    Parse an array of ``aclitem``.

    None means the object has default privileges, and returns an empty list.
    """
    if items is None:
        return []

    rv = []
    for item in items:
        acl = parse_acl(item)
        if acl is not None:
            rv.append(acl)
    return rv


def _split_grantee(item):
    if not item.startswith('"'):
        return item.partition("=")

    # a quoted grantee: doubled quotes are escaped quotes
    i = 1
    name = []
    while i < len(item):
        if item[i] == '"':
            if item[i + 1 : i + 2] == '"':
                name.append('"')
                i += 2
                continue
            break
        name.append(item[i])
        i += 1

    rest = item[i + 1 :]
    if not rest.startswith("="):
        return "".join(name), "", ""
    return "".join(name), "=", rest[1:]
