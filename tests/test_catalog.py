import pytest

from metadump import consts
from metadump.catalog import Catalog
from metadump.dbobjects import Constraint, DbObject, Function, Schema, Sequence
from metadump.dbobjects import Table, View


def test_add_get():
    cat = Catalog()
    t = cat.add_object(Table(10, "public", "t"))
    s = cat.add_object(Schema(11, "public"))

    assert cat.get("public", "t") is t
    assert cat.get(oid=10) is t
    assert cat.get(oid=10, cls=Table) is t
    assert cat.get(oid=10, cls=View) is None
    assert cat.get(oid=11) is s
    assert cat.get(oid=99) is None
    assert list(cat) == [t, s]
    assert cat.objects(Schema) == [s]


def test_get_bad_args():
    cat = Catalog()
    with pytest.raises(TypeError):
        cat.get("public")
    with pytest.raises(TypeError):
        cat.get()


def test_duplicates():
    cat = Catalog()
    cat.add_object(Table(10, "public", "t"))
    with pytest.raises(ValueError):
        cat.add_object(Table(10, "public", "t2"))
    with pytest.raises(ValueError):
        cat.add_object(View(11, "public", "t"))


def test_sequence_owner():
    cat = Catalog()
    seq = cat.add_object(Sequence(10, "public", "s"))
    cat.set_sequence_owner(seq, "public.t.id")
    assert cat.sequence_owners == {10: "public.t.id"}
    with pytest.raises(ValueError):
        cat.set_sequence_owner(seq, "public.t.id2")


def test_clear():
    cat = Catalog()
    t = cat.add_object(Table(10, "public", "t"))
    cat.add_constraint(t, Constraint("k", "u", "UNIQUE (i)"))
    cat.view_dependencies.append((1, 2))
    cat.table_dependencies.append((3, 4))
    cat.clear()
    assert not list(cat)
    assert cat.get(oid=10) is None
    assert not cat.constraints
    assert not cat.view_dependencies
    assert not cat.table_dependencies


def test_from_kind():
    obj = DbObject.from_kind(consts.KIND_VIEW, 1, "s", "v", definition="SELECT 1")
    assert isinstance(obj, View)
    assert obj.keyword == "VIEW"
    with pytest.raises(ValueError):
        DbObject.from_kind("widget", 1, "w")


@pytest.mark.parametrize(
    "names, expected",
    [
        (("public", "t"), "public.t"),
        (("public", "WowZa"), 'public."WowZa"'),
        (("my schema", "t"), '"my schema".t'),
        (("public", 'a"b'), 'public."a""b"'),
        (("public", "user"), 'public."user"'),
        (("public", "1t"), 'public."1t"'),
        (("public", "t$1"), "public.t$1"),
    ],
)
def test_escape_idents(names, expected):
    assert DbObject.escape_idents(*names) == expected


def test_overloaded_functions():
    cat = Catalog()
    f1 = cat.add_object(Function(1, "public", "f", arguments="integer"))
    f2 = cat.add_object(Function(2, "public", "f", arguments="text"))
    assert cat.objects(Function) == [f1, f2]
    assert cat.get(oid=2, cls=Function) is f2
    assert cat.get("public", "f") is None
