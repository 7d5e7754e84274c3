#!/usr/bin/env python3

"""
Reading the catalog from a PostgreSQL database.

This file is part of pg_metadump.
"""

import logging
from functools import lru_cache

import psycopg
from psycopg import sql
from psycopg.rows import namedtuple_row

from .reader import Reader
from .dbobjects import (
    Column,
    Constraint,
    ExternalProtocol,
    Function,
    FunctionInfo,
    Index,
    ProceduralLanguage,
    Rule,
    Schema,
    Sequence,
    Table,
    Trigger,
    View,
)
from .metadata import ObjectMetadata, parse_acls
from .exceptions import DumpError

logger = logging.getLogger("metadump.dbreader")

# Condition to exclude the system schemas; the schema is aliased "n"
USER_SCHEMAS = sql.SQL(
    "n.nspname !~ '^pg_' and n.nspname <> 'information_schema'"
    " and n.nspname <> 'gp_toolkit'"
)


class DbReader(Reader):
    def __init__(self, dsn):
        super().__init__()
        self.dsn = dsn

    @property
    @lru_cache(maxsize=1)
    def connection(self):
        logger.debug("connecting to '%s'", self.dsn)
        try:
            cnn = psycopg.connect(self.dsn, row_factory=namedtuple_row)
        except Exception as e:
            raise DumpError("error connecting to the database: %s" % e)

        cnn.autocommit = True
        return cnn

    def cursor(self):
        return self.connection.cursor()

    def load_catalog(self):
        cat = self.catalog

        for rec in self._fetch_functions():
            cat.functions[rec.oid] = FunctionInfo(
                qualified_name=rec.qualified_name,
                arguments=rec.arguments,
                is_internal=rec.is_internal,
            )

        for rec in self._fetch_schemas():
            cat.add_object(Schema(rec.oid, rec.name))
        self._load_metadata("pg_namespace", "nspacl", "nspowner")

        for rec in self._fetch_languages():
            cat.add_object(
                ProceduralLanguage(
                    rec.oid,
                    rec.name,
                    owner=rec.owner,
                    trusted=rec.trusted,
                    handler=rec.handler,
                    inline=rec.inline,
                    validator=rec.validator,
                )
            )
        self._load_metadata("pg_language", "lanacl", "lanowner")

        for rec in self._fetch_user_functions():
            cat.add_object(
                Function(
                    rec.oid,
                    rec.schema,
                    rec.name,
                    schema_oid=rec.schema_oid,
                    arguments=rec.arguments,
                    identity_arguments=rec.identity_arguments,
                    result_type=rec.result_type,
                    returns_set=rec.returns_set,
                    body=rec.body,
                    binary_path=rec.binary_path,
                    language=rec.language,
                    volatility=rec.volatility,
                    is_strict=rec.is_strict,
                    is_security_definer=rec.is_security_definer,
                    parallel=rec.parallel,
                    cost=rec.cost,
                    rows=rec.rows,
                    config=rec.config,
                )
            )
        self._load_metadata(
            "pg_proc",
            "proacl",
            "proowner",
            "pronamespace not in"
            " ('pg_catalog'::regnamespace, 'information_schema'::regnamespace)",
        )

        for rec in self._fetch_sequences():
            seq = Sequence(
                rec.oid,
                rec.schema,
                rec.name,
                schema_oid=rec.schema_oid,
                increment=rec.increment,
                max_value=rec.max_value,
                min_value=rec.min_value,
                cache_value=rec.cache_value,
                is_cycled=rec.is_cycled,
            )
            seq.last_value, seq.is_called = self.get_sequence_state(seq)
            cat.add_object(seq)

        for rec in self._fetch_sequence_owners():
            seq = cat.get(oid=rec.seq_oid, cls=Sequence)
            if seq is None:
                logger.debug(
                    "skipping owner %s of unknown sequence %s", rec.column, rec.seq_oid
                )
                continue
            cat.set_sequence_owner(seq, rec.column)

        for rec in self._fetch_protocols():
            cat.add_object(
                ExternalProtocol(
                    rec.oid,
                    rec.name,
                    owner=rec.owner,
                    trusted=rec.trusted,
                    read_function=rec.read_function,
                    write_function=rec.write_function,
                    validator=rec.validator,
                )
            )

        for rec in self._fetch_views():
            cat.add_object(
                View(
                    rec.oid,
                    rec.schema,
                    rec.name,
                    schema_oid=rec.schema_oid,
                    definition=rec.definition,
                )
            )
        for rec in self._fetch_view_dependencies():
            cat.view_dependencies.append((rec.referenced_oid, rec.dependent_oid))

        for rec in self._fetch_tables():
            cat.add_object(
                Table(
                    rec.oid,
                    rec.schema,
                    rec.name,
                    schema_oid=rec.schema_oid,
                    partition_key=rec.partition_key,
                    partition_bound=rec.partition_bound,
                    storage_options=", ".join(rec.options),
                    distribution=rec.distribution,
                )
            )

        for rec in self._fetch_columns():
            table = cat.get(oid=rec.table_oid, cls=Table)
            assert table, "no table with oid %s for column %s found" % (
                rec.table_oid,
                rec.name,
            )
            table.columns.append(
                Column(
                    rec.name,
                    rec.type,
                    not_null=rec.not_null,
                    default=rec.default,
                    identity=rec.identity,
                    generated=rec.generated,
                    comment=rec.comment,
                )
            )

        for rec in self._fetch_table_parents():
            table = cat.get(oid=rec.table_oid, cls=Table)
            assert table, "no table with oid %s found" % rec.table_oid
            if rec.is_partition:
                table.partition_of = rec.parent
            else:
                table.inherits.append(rec.parent)
            cat.table_dependencies.append((rec.parent_oid, rec.table_oid))

        for rec in self._fetch_constraints():
            table = cat.get(oid=rec.table_oid, cls=Table)
            assert table, "no table with oid %s for constraint %s found" % (
                rec.table_oid,
                rec.name,
            )
            cat.add_constraint(
                table,
                Constraint(rec.name, rec.type, rec.definition, comment=rec.comment),
            )

        for rec in self._fetch_indexes():
            cat.add_object(
                Index(
                    rec.oid,
                    rec.name,
                    owning_schema=rec.owning_schema,
                    owning_table=rec.owning_table,
                    definition=rec.definition,
                    comment=rec.comment,
                )
            )
            if rec.comment:
                cat.metadata[rec.oid] = ObjectMetadata(comment=rec.comment)

        for cls, recs in ((Rule, self._fetch_rules()), (Trigger, self._fetch_triggers())):
            for rec in recs:
                cat.add_object(
                    cls(
                        rec.oid,
                        rec.name,
                        owning_schema=rec.owning_schema,
                        owning_table=rec.owning_table,
                        definition=rec.definition,
                        comment=rec.comment,
                    )
                )

        # relations metadata last: it refers to the objects loaded above
        self._load_metadata(
            "pg_class", "relacl", "relowner", "relkind in ('r', 'p', 'S', 'v')"
        )

    def _load_metadata(self, table, acl_col, owner_col, where=None):
        for rec in self._fetch_metadata(table, acl_col, owner_col, where):
            if self.catalog.get(oid=rec.oid) is None:
                continue
            self.catalog.metadata[rec.oid] = ObjectMetadata(
                privileges=parse_acls(rec.acl),
                owner=rec.owner,
                comment=rec.comment,
            )

    def _fetch_metadata(self, table, acl_col, owner_col, where=None):
        logger.debug("fetching metadata from %s", table)
        with self.cursor() as cur:
            cur.execute(
                sql.SQL(
                    """
select
    o.oid as oid,
    o.{acl}::text[] as acl,
    pg_catalog.pg_get_userbyid(o.{owner}) as owner,
    coalesce(pg_catalog.obj_description(o.oid, %(table)s), '') as comment
from {table} o
where {where}
"""
                ).format(
                    acl=sql.Identifier(acl_col),
                    owner=sql.Identifier(owner_col),
                    table=sql.Identifier("pg_catalog", table),
                    where=sql.SQL(where or "true"),
                ),
                {"table": table},
            )
            return cur.fetchall()

    def _fetch_functions(self):
        logger.debug("fetching functions")
        with self.cursor() as cur:
            cur.execute(
                """
select
    p.oid as oid,
    pg_catalog.quote_ident(n.nspname) || '.' || pg_catalog.quote_ident(p.proname)
        as qualified_name,
    pg_catalog.pg_get_function_arguments(p.oid) as arguments,
    n.nspname in ('pg_catalog', 'information_schema') as is_internal
from pg_proc p
join pg_namespace n on n.oid = p.pronamespace
"""
            )
            return cur.fetchall()

    def _fetch_user_functions(self):
        logger.debug("fetching user functions")
        with self.cursor() as cur:
            # functions created by an extension are skipped
            cur.execute(
                sql.SQL(
                    """
select
    p.oid as oid,
    n.oid as schema_oid,
    n.nspname as schema,
    p.proname as name,
    pg_catalog.pg_get_function_arguments(p.oid) as arguments,
    pg_catalog.pg_get_function_identity_arguments(p.oid) as identity_arguments,
    pg_catalog.pg_get_function_result(p.oid) as result_type,
    p.proretset as returns_set,
    p.prosrc as body,
    nullif(nullif(p.probin, '-'), '') as binary_path,
    l.lanname as language,
    p.provolatile::text as volatility,
    p.proisstrict as is_strict,
    p.prosecdef as is_security_definer,
    p.proparallel::text as parallel,
    p.procost as cost,
    p.prorows as rows,
    coalesce(p.proconfig, '{{}}') as config
from pg_proc p
join pg_namespace n on n.oid = p.pronamespace
join pg_language l on l.oid = p.prolang
where p.prokind = 'f'
and {user_schemas}
and not exists (
    select 1 from pg_depend d
    where d.classid = 'pg_proc'::regclass
    and d.objid = p.oid and d.deptype = 'e')
order by n.nspname, p.proname, identity_arguments
"""
                ).format(user_schemas=USER_SCHEMAS)
            )
            return cur.fetchall()

    def _fetch_schemas(self):
        logger.debug("fetching schemas")
        with self.cursor() as cur:
            cur.execute(
                sql.SQL(
                    """
select n.oid as oid, n.nspname as name
from pg_namespace n
where {user_schemas}
and n.nspname !~ '^pg_toast'
order by n.nspname
"""
                ).format(user_schemas=USER_SCHEMAS)
            )
            return cur.fetchall()

    def _fetch_languages(self):
        logger.debug("fetching procedural languages")
        with self.cursor() as cur:
            # languages created by an extension (e.g. plpgsql) are skipped
            cur.execute(
                """
select
    l.oid as oid,
    l.lanname as name,
    pg_catalog.pg_get_userbyid(l.lanowner) as owner,
    l.lanpltrusted as trusted,
    l.lanplcallfoid::int8 as handler,
    l.laninline::int8 as inline,
    l.lanvalidator::int8 as validator
from pg_language l
where l.lanispl
and not exists (
    select 1 from pg_depend d
    where d.classid = 'pg_language'::regclass
    and d.objid = l.oid and d.deptype = 'e')
order by l.lanname
"""
            )
            return cur.fetchall()

    def _fetch_sequences(self):
        logger.debug("fetching sequences")
        with self.cursor() as cur:
            cur.execute(
                sql.SQL(
                    """
select
    c.oid as oid,
    n.oid as schema_oid,
    n.nspname as schema,
    c.relname as name,
    s.seqincrement as increment,
    s.seqmax as max_value,
    s.seqmin as min_value,
    s.seqcache as cache_value,
    s.seqcycle as is_cycled
from pg_sequence s
join pg_class c on c.oid = s.seqrelid
join pg_namespace n on n.oid = c.relnamespace
where {user_schemas}
and not exists (
    select 1 from pg_depend d
    where d.classid = 'pg_class'::regclass
    and d.objid = c.oid and d.deptype in ('i', 'e'))
order by n.nspname, c.relname
"""
                ).format(user_schemas=USER_SCHEMAS)
            )
            return cur.fetchall()

    def get_sequence_state(self, seq):
        """
        Return the last value of a sequence and whether it was consumed.
        """
        with self.cursor() as cur:
            cur.execute(
                sql.SQL("select last_value, is_called from {}").format(seq.ident)
            )
            rec = cur.fetchone()
            return rec.last_value, rec.is_called

    def _fetch_sequence_owners(self):
        logger.debug("fetching sequences owners")
        with self.cursor() as cur:
            cur.execute(
                sql.SQL(
                    """
select
    seq.oid as seq_oid,
    pg_catalog.quote_ident(tn.nspname)
        || '.' || pg_catalog.quote_ident(tbl.relname)
        || '.' || pg_catalog.quote_ident(att.attname) as column
from pg_depend dep
join pg_class seq
    on dep.classid = 'pg_class'::regclass
    and seq.oid = dep.objid
    and seq.relkind = 'S'
join pg_namespace n on n.oid = seq.relnamespace
join pg_class tbl on dep.refclassid = 'pg_class'::regclass and tbl.oid = dep.refobjid
join pg_namespace tn on tn.oid = tbl.relnamespace
join pg_attribute att on (att.attrelid, att.attnum) = (tbl.oid, dep.refobjsubid)
where dep.deptype = 'a'
and {user_schemas}
"""
                ).format(user_schemas=USER_SCHEMAS)
            )
            return cur.fetchall()

    def _fetch_protocols(self):
        logger.debug("fetching external protocols")
        with self.cursor() as cur:
            # only Greenplum has external protocols
            cur.execute(
                "select pg_catalog.to_regclass('pg_catalog.pg_extprotocol') as rel"
            )
            if cur.fetchone().rel is None:
                return []

            cur.execute(
                """
select
    p.oid as oid,
    p.ptcname as name,
    pg_catalog.pg_get_userbyid(p.ptcowner) as owner,
    p.ptctrusted as trusted,
    coalesce(p.ptcreadfn::int8, 0) as read_function,
    coalesce(p.ptcwritefn::int8, 0) as write_function,
    coalesce(p.ptcvalidatorfn::int8, 0) as validator
from pg_extprotocol p
order by p.ptcname
"""
            )
            return cur.fetchall()

    def _fetch_views(self):
        logger.debug("fetching views")
        with self.cursor() as cur:
            cur.execute(
                sql.SQL(
                    """
select
    c.oid as oid,
    n.oid as schema_oid,
    n.nspname as schema,
    c.relname as name,
    pg_catalog.pg_get_viewdef(c.oid) as definition
from pg_class c
join pg_namespace n on n.oid = c.relnamespace
where c.relkind = 'v'
and {user_schemas}
order by n.nspname, c.relname
"""
                ).format(user_schemas=USER_SCHEMAS)
            )
            return cur.fetchall()

    def _fetch_view_dependencies(self):
        logger.debug("fetching views dependencies")
        with self.cursor() as cur:
            # a view depends on the relations its _RETURN rule refers to
            cur.execute(
                """
select distinct
    d.refobjid as referenced_oid,
    v.oid as dependent_oid
from pg_depend d
join pg_rewrite r on d.classid = 'pg_rewrite'::regclass and d.objid = r.oid
join pg_class v on v.oid = r.ev_class and v.relkind = 'v'
join pg_class rv on d.refclassid = 'pg_class'::regclass
    and rv.oid = d.refobjid and rv.relkind = 'v'
where d.refobjid <> v.oid
order by 1, 2
"""
            )
            return cur.fetchall()

    def _fetch_tables(self):
        logger.debug("fetching tables")
        with self.cursor() as cur:
            # only Greenplum tables have a distribution policy
            cur.execute(
                "select pg_catalog.to_regproc("
                "'pg_catalog.pg_get_table_distributedby') as proc"
            )
            if cur.fetchone().proc is not None:
                distribution = sql.SQL("pg_catalog.pg_get_table_distributedby(c.oid)")
            else:
                distribution = sql.SQL("''")

            cur.execute(
                sql.SQL(
                    """
select
    c.oid as oid,
    n.oid as schema_oid,
    n.nspname as schema,
    c.relname as name,
    coalesce(c.reloptions, '{{}}') as options,
    case when c.relkind = 'p'
        then pg_catalog.pg_get_partkeydef(c.oid) else '' end as partition_key,
    coalesce(pg_catalog.pg_get_expr(c.relpartbound, c.oid), '') as partition_bound,
    {distribution} as distribution
from pg_class c
join pg_namespace n on n.oid = c.relnamespace
where c.relkind in ('r', 'p')
and {user_schemas}
order by n.nspname, c.relname
"""
                ).format(user_schemas=USER_SCHEMAS, distribution=distribution)
            )
            return cur.fetchall()

    def _fetch_columns(self):
        logger.debug("fetching columns")
        with self.cursor() as cur:
            # inherited columns are created by the parent table
            cur.execute(
                sql.SQL(
                    """
select
    a.attrelid as table_oid,
    a.attname as name,
    pg_catalog.format_type(a.atttypid, a.atttypmod) as type,
    a.attnotnull as not_null,
    case when a.attgenerated = ''
        then pg_catalog.pg_get_expr(d.adbin, d.adrelid) end as default,
    case when a.attgenerated <> ''
        then pg_catalog.pg_get_expr(d.adbin, d.adrelid) else '' end as generated,
    a.attidentity::text as identity,
    coalesce(pg_catalog.col_description(a.attrelid, a.attnum), '') as comment
from pg_attribute a
join pg_class c on c.oid = a.attrelid
join pg_namespace n on n.oid = c.relnamespace
left join pg_attrdef d on (d.adrelid, d.adnum) = (a.attrelid, a.attnum)
where c.relkind in ('r', 'p')
and a.attnum > 0
and not a.attisdropped
and a.attislocal
and {user_schemas}
order by a.attrelid, a.attnum
"""
                ).format(user_schemas=USER_SCHEMAS)
            )
            return cur.fetchall()

    def _fetch_table_parents(self):
        logger.debug("fetching tables parents")
        with self.cursor() as cur:
            cur.execute(
                sql.SQL(
                    """
select
    i.inhrelid as table_oid,
    i.inhparent as parent_oid,
    pg_catalog.quote_ident(pn.nspname)
        || '.' || pg_catalog.quote_ident(p.relname) as parent,
    c.relispartition as is_partition
from pg_inherits i
join pg_class c on c.oid = i.inhrelid
join pg_namespace n on n.oid = c.relnamespace
join pg_class p on p.oid = i.inhparent
join pg_namespace pn on pn.oid = p.relnamespace
where c.relkind in ('r', 'p')
and {user_schemas}
order by i.inhrelid, i.inhseqno
"""
                ).format(user_schemas=USER_SCHEMAS)
            )
            return cur.fetchall()

    def _fetch_constraints(self):
        logger.debug("fetching constraints")
        with self.cursor() as cur:
            # inherited constraints are created with the parent's
            cur.execute(
                sql.SQL(
                    """
select
    c.conrelid as table_oid,
    c.conname as name,
    c.contype as type,
    pg_catalog.pg_get_constraintdef(c.oid, true) as definition,
    coalesce(pg_catalog.obj_description(c.oid, 'pg_constraint'), '') as comment
from pg_constraint c
join pg_class t on t.oid = c.conrelid
join pg_namespace n on n.oid = t.relnamespace
where c.contype in ('u', 'p', 'f', 'c')
and c.conislocal
and t.relkind in ('r', 'p')
and {user_schemas}
order by c.conrelid, c.conname
"""
                ).format(user_schemas=USER_SCHEMAS)
            )
            return cur.fetchall()

    def _fetch_indexes(self):
        logger.debug("fetching indexes")
        with self.cursor() as cur:
            # indexes implementing constraints are created by the constraints
            cur.execute(
                sql.SQL(
                    """
select
    i.indexrelid as oid,
    ic.relname as name,
    n.nspname as owning_schema,
    t.relname as owning_table,
    pg_catalog.pg_get_indexdef(i.indexrelid) as definition,
    coalesce(pg_catalog.obj_description(i.indexrelid, 'pg_class'), '')
        as comment
from pg_index i
join pg_class ic on ic.oid = i.indexrelid
join pg_class t on t.oid = i.indrelid
join pg_namespace n on n.oid = ic.relnamespace
where {user_schemas}
and not exists (
    select 1 from pg_constraint c where c.conindid = i.indexrelid)
order by n.nspname, ic.relname
"""
                ).format(user_schemas=USER_SCHEMAS)
            )
            return cur.fetchall()

    def _fetch_rules(self):
        logger.debug("fetching rules")
        with self.cursor() as cur:
            # _RETURN rules implement views
            cur.execute(
                sql.SQL(
                    """
select
    r.oid as oid,
    r.rulename as name,
    n.nspname as owning_schema,
    c.relname as owning_table,
    pg_catalog.pg_get_ruledef(r.oid) as definition,
    coalesce(pg_catalog.obj_description(r.oid, 'pg_rewrite'), '') as comment
from pg_rewrite r
join pg_class c on c.oid = r.ev_class
join pg_namespace n on n.oid = c.relnamespace
where r.rulename <> '_RETURN'
and {user_schemas}
order by n.nspname, c.relname, r.rulename
"""
                ).format(user_schemas=USER_SCHEMAS)
            )
            return cur.fetchall()

    def _fetch_triggers(self):
        logger.debug("fetching triggers")
        with self.cursor() as cur:
            cur.execute(
                sql.SQL(
                    """
select
    t.oid as oid,
    t.tgname as name,
    n.nspname as owning_schema,
    c.relname as owning_table,
    pg_catalog.pg_get_triggerdef(t.oid) as definition,
    coalesce(pg_catalog.obj_description(t.oid, 'pg_trigger'), '') as comment
from pg_trigger t
join pg_class c on c.oid = t.tgrelid
join pg_namespace n on n.oid = c.relnamespace
where not t.tgisinternal
and {user_schemas}
order by n.nspname, c.relname, t.tgname
"""
                ).format(user_schemas=USER_SCHEMAS)
            )
            return cur.fetchall()
