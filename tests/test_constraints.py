from itertools import permutations

import pytest

from metadump import consts
from metadump.dbobjects import Constraint, Table
from metadump.predata import (
    constraint_statements,
    construct_constraints_for_all_tables,
    process_constraints,
)


def uniq(name="tablename_i_key", comment=""):
    return Constraint(name, consts.CON_UNIQUE, "UNIQUE (i)", comment=comment)


def fkey(name="tablename_j_fkey"):
    return Constraint(
        name, consts.CON_FOREIGN_KEY, "FOREIGN KEY (j) REFERENCES public.other(j)"
    )


def test_no_constraints():
    table = Table(1, "public", "tablename")
    assert process_constraints(table, []) == ([], [])


def test_unique():
    table = Table(1, "public", "tablename")
    cons, fkcons = process_constraints(table, [uniq()])
    assert cons == [
        "\n\nALTER TABLE ONLY public.tablename"
        " ADD CONSTRAINT tablename_i_key UNIQUE (i);"
    ]
    assert fkcons == []


def test_check_and_primary_key():
    table = Table(1, "public", "tablename")
    cons, fkcons = process_constraints(
        table,
        [
            Constraint("check1", consts.CON_CHECK, "CHECK (i <> 42)"),
            Constraint("tablename_pkey", consts.CON_PRIMARY_KEY, "PRIMARY KEY (i)"),
        ],
    )
    assert cons == [
        "\n\nALTER TABLE ONLY public.tablename ADD CONSTRAINT check1 CHECK (i <> 42);",
        "\n\nALTER TABLE ONLY public.tablename"
        " ADD CONSTRAINT tablename_pkey PRIMARY KEY (i);",
    ]
    assert fkcons == []


def test_foreign_key_separated():
    table = Table(1, "public", "tablename")
    cons, fkcons = process_constraints(table, [fkey(), uniq()])
    assert len(cons) == 1
    assert "UNIQUE" in cons[0]
    assert fkcons == [
        "\n\nALTER TABLE ONLY public.tablename ADD CONSTRAINT tablename_j_fkey"
        " FOREIGN KEY (j) REFERENCES public.other(j);"
    ]


def test_comment():
    table = Table(1, "public", "tablename")
    cons, _ = process_constraints(table, [uniq(comment="it's unique")])
    assert cons == [
        "\n\nALTER TABLE ONLY public.tablename"
        " ADD CONSTRAINT tablename_i_key UNIQUE (i);"
        "\n\nCOMMENT ON CONSTRAINT tablename_i_key ON public.tablename"
        " IS 'it''s unique';"
    ]


def test_quoted_names():
    table = Table(1, "Odd Schema", "Table")
    cons, _ = process_constraints(table, [uniq(name="Key")])
    assert cons == [
        '\n\nALTER TABLE ONLY "Odd Schema"."Table" ADD CONSTRAINT "Key" UNIQUE (i);'
    ]


def test_all_tables():
    t1 = Table(1, "public", "t1")
    t2 = Table(2, "public", "t2")
    t3 = Table(3, "public", "t3")
    constraints = {
        1: [uniq("t1_key"), fkey("t1_fkey")],
        2: [uniq("t2_key")],
        99: [uniq("ignored")],
    }
    cons, fkcons = construct_constraints_for_all_tables([t1, t2, t3], constraints)
    assert len(cons) == 2
    assert "t1_key" in cons[0]
    assert "t2_key" in cons[1]
    assert len(fkcons) == 1
    assert "t1_fkey" in fkcons[0]


def test_statements_fkeys_last():
    rv = constraint_statements(["b", "a"], ["d", "c"])
    assert rv == "a\nb\nc\nd\n"


def test_statements_empty():
    assert constraint_statements([], []) == ""


MIXED = [
    Constraint("t_pkey", consts.CON_PRIMARY_KEY, "PRIMARY KEY (id)"),
    Constraint("t_i_key", consts.CON_UNIQUE, "UNIQUE (i)"),
    Constraint("t_i_check", consts.CON_CHECK, "CHECK (i > 0)"),
    Constraint("t_j_fkey", consts.CON_FOREIGN_KEY, "FOREIGN KEY (j) REFERENCES a(j)"),
    Constraint("t_k_fkey", consts.CON_FOREIGN_KEY, "FOREIGN KEY (k) REFERENCES b(k)"),
]


@pytest.mark.parametrize("order", list(permutations(range(len(MIXED)))))
def test_statements_order_independent(order):
    table = Table(1, "public", "t")
    cons, fkcons = process_constraints(table, [MIXED[i] for i in order])
    assert len(cons) == 3
    assert len(fkcons) == 2
    assert all("FOREIGN KEY" not in stmt for stmt in cons)
    assert all("FOREIGN KEY" in stmt for stmt in fkcons)

    expected = [
        "\n\nALTER TABLE ONLY public.t ADD CONSTRAINT t_i_check CHECK (i > 0);\n",
        "\n\nALTER TABLE ONLY public.t ADD CONSTRAINT t_i_key UNIQUE (i);\n",
        "\n\nALTER TABLE ONLY public.t ADD CONSTRAINT t_pkey PRIMARY KEY (id);\n",
        "\n\nALTER TABLE ONLY public.t ADD CONSTRAINT t_j_fkey"
        " FOREIGN KEY (j) REFERENCES a(j);\n",
        "\n\nALTER TABLE ONLY public.t ADD CONSTRAINT t_k_fkey"
        " FOREIGN KEY (k) REFERENCES b(k);\n",
    ]
    assert constraint_statements(cons, fkcons) == "".join(expected)
