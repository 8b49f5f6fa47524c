from __future__ import annotations

import pytest

from tablewright.db.builder import CommandBuilder
from tablewright.db.dialects import SqlServerDialect
from tablewright.db.models import OperationType, TableMetadata
from tablewright.errors import EmptyFieldSetError


@pytest.fixture
def people() -> CommandBuilder:
    return CommandBuilder(TableMetadata("People", "ID", is_identity=True))


def test_insert_drops_identity_key_and_numbers_placeholders(people: CommandBuilder) -> None:
    cmd = people.build_insert({"ID": 7, "Name": "Ann", "Age": 30})

    assert cmd.sql == "INSERT INTO People (Name,Age) VALUES (@0,@1)"
    assert cmd.parameters == ("Ann", 30)
    assert cmd.op_type == OperationType.INSERT
    assert cmd.table == "People"


def test_insert_drops_identity_key_case_insensitively(people: CommandBuilder) -> None:
    cmd = people.build_insert({"id": 5, "Name": "Ann"})

    assert cmd.sql == "INSERT INTO People (Name) VALUES (@0)"
    assert cmd.parameters == ("Ann",)


def test_insert_keeps_key_for_non_identity_table() -> None:
    builder = CommandBuilder(TableMetadata("Codes", "Code", is_identity=False))

    cmd = builder.build_insert({"Code": "A1", "Label": "first"})

    assert cmd.sql == "INSERT INTO Codes (Code,Label) VALUES (@0,@1)"
    assert cmd.parameters == ("A1", "first")


def test_insert_does_not_mutate_callers_fields(people: CommandBuilder) -> None:
    fields = {"ID": 1, "Name": "Ann"}
    people.build_insert(fields)
    assert fields == {"ID": 1, "Name": "Ann"}


def test_insert_with_only_identity_key_fails(people: CommandBuilder) -> None:
    with pytest.raises(EmptyFieldSetError):
        people.build_insert({"ID": 1})


def test_insert_with_no_fields_fails(people: CommandBuilder) -> None:
    with pytest.raises(EmptyFieldSetError):
        people.build_insert({})


def test_insert_rejects_unsafe_column_names(people: CommandBuilder) -> None:
    with pytest.raises(ValueError):
        people.build_insert({"Name); DROP TABLE People; --": "x"})


def test_update_skips_key_case_insensitively_and_binds_key_last(people: CommandBuilder) -> None:
    cmd = people.build_update({"id": 3, "Name": "Bob", "Age": 41}, 3)

    assert cmd.sql == "UPDATE People SET Name=@0, Age=@1 WHERE ID=@2"
    assert cmd.parameters == ("Bob", 41, 3)
    assert cmd.op_type == OperationType.UPDATE


def test_update_skips_none_values(people: CommandBuilder) -> None:
    cmd = people.build_update({"Name": None, "Age": 50}, 9)

    assert cmd.sql == "UPDATE People SET Age=@0 WHERE ID=@1"
    assert cmd.parameters == (50, 9)


def test_update_with_nothing_settable_fails(people: CommandBuilder) -> None:
    with pytest.raises(EmptyFieldSetError):
        people.build_update({"ID": 1, "Name": None}, 1)


def test_delete_by_key_ignores_where(people: CommandBuilder) -> None:
    cmd = people.build_delete("Name = @0", 5, "ignored")

    assert cmd.sql == "DELETE FROM People WHERE ID=@0"
    assert cmd.parameters == (5,)
    assert cmd.op_type == OperationType.DELETE


@pytest.mark.parametrize(
    "where, expected",
    [
        ("Age > @0", "DELETE FROM People WHERE Age > @0"),
        ("WHERE Age > @0", "DELETE FROM People WHERE Age > @0"),
        ("where Age > @0", "DELETE FROM People where Age > @0"),
        ("where_id = @0", "DELETE FROM People WHERE where_id = @0"),
        ("whereabouts = @0", "DELETE FROM People WHERE whereabouts = @0"),
        ("", "DELETE FROM People"),
    ],
)
def test_delete_where_prefixing(people: CommandBuilder, where: str, expected: str) -> None:
    cmd = people.build_delete(where, None, 18)
    assert cmd.sql == expected


def test_delete_where_keeps_arguments(people: CommandBuilder) -> None:
    cmd = people.build_delete("Age > @0 AND Name = @1", None, 18, "Ann")
    assert cmd.parameters == (18, "Ann")


def test_select_with_limit_order_and_where(people: CommandBuilder) -> None:
    cmd = people.build_select("Age > @0", "Name DESC", 10, "Name, Age", 18)

    assert cmd.sql == "SELECT Name, Age FROM People WHERE Age > @0 ORDER BY Name DESC LIMIT 10"
    assert cmd.parameters == (18,)
    assert cmd.op_type == OperationType.SELECT


def test_select_all_defaults(people: CommandBuilder) -> None:
    assert people.build_select().sql == "SELECT * FROM People"


def test_select_uses_dialect_row_limit() -> None:
    builder = CommandBuilder(TableMetadata("People", "ID"), SqlServerDialect())

    cmd = builder.build_select("Age > @0", "ORDER BY Name", 5, "*", 18)

    assert cmd.sql == "SELECT TOP 5 * FROM People WHERE Age > @0 ORDER BY Name"


def test_select_where_with_braces_is_not_formatted(people: CommandBuilder) -> None:
    cmd = people.build_select("Name = '{x}'")
    assert cmd.sql == "SELECT * FROM People WHERE Name = '{x}'"


def test_find_first_and_count(people: CommandBuilder) -> None:
    assert people.build_find(4).sql == "SELECT * FROM People WHERE ID = @0 LIMIT 1"
    assert people.build_find(4).parameters == (4,)
    assert people.build_first("Name = @0", "Ann").sql == "SELECT * FROM People WHERE Name = @0 LIMIT 1"
    assert people.build_count().sql == "SELECT COUNT(1) FROM People"
    assert people.build_count("Age > @0", 3).sql == "SELECT COUNT(1) FROM People WHERE Age > @0"
