"""Tests for the SQL produced by the query builders."""

from __future__ import annotations

from datetime import UTC, datetime

import pytest

from relmap import (
    Base,
    InvalidModelArg,
    InvalidModelsArg,
    Mapped,
    MissingIDField,
    limit,
    order_by,
    where,
)
from relmap.query import (
    DeleteQuery,
    InsertQuery,
    SelectAllQuery,
    SelectOneQuery,
    UpdateQuery,
    UpsertQuery,
    build_delete,
    build_insert,
    build_select_all,
    build_select_count,
    build_select_one,
    build_update,
    build_upsert,
)

NOW = datetime(2024, 1, 1, 12, 0, tzinfo=UTC)


class Model(Base):
    id: Mapped[int]
    bool: Mapped[bool]
    string: Mapped[str]


class IdMissingModel(Base):
    string: Mapped[str]


class ManagedFieldsModel(Base):
    id: Mapped[int]
    name: Mapped[str]
    created_at: Mapped[datetime | None]
    updated_at: Mapped[datetime | None]


class OnlyId(Base):
    id: Mapped[int]


class TestSelect:
    """Test select builders."""

    def test_select_one(self):
        q = build_select_one(Model(), where("string = ?", "abc"), limit(1))
        assert isinstance(q, SelectOneQuery)
        assert q.to_sql() == ("select * from models where string = ? limit ?", ["abc", 1])
        assert not q.writes

    def test_select_all(self):
        q = build_select_all(list[Model], order_by("id desc"))
        assert isinstance(q, SelectAllQuery)
        assert q.model is Model
        assert q.to_sql() == ("select * from models order by id desc", [])

    def test_select_count(self):
        q = build_select_count("models", where("bool = ?", True))
        assert q.to_sql() == ("select count(*) from models where bool = ?", [True])

    def test_select_one_rejects_non_model(self):
        with pytest.raises(InvalidModelArg):
            build_select_one(Model)
        with pytest.raises(InvalidModelArg):
            build_select_one([Model()])
        with pytest.raises(InvalidModelArg):
            build_select_one(42)

    def test_select_all_rejects_non_collection(self):
        with pytest.raises(InvalidModelsArg):
            build_select_all(Model())
        with pytest.raises(InvalidModelsArg):
            build_select_all(list[int])
        with pytest.raises(InvalidModelsArg):
            build_select_all([Model()])

    def test_missing_id_field(self):
        with pytest.raises(MissingIDField):
            build_select_one(IdMissingModel())
        with pytest.raises(MissingIDField):
            build_select_all(list[IdMissingModel])


class TestInsert:
    """Test insert builder."""

    def test_insert_excludes_id(self):
        q = build_insert(Model(id=9, bool=True, string="abc"), NOW)
        assert isinstance(q, InsertQuery)
        assert q.writes
        assert q.to_sql() == ("insert into models (bool,string) values (?,?)", [True, "abc"])
        assert q.writeback == {}

    def test_insert_sets_managed_fields(self):
        m = ManagedFieldsModel(name="n", created_at=datetime(2000, 1, 1))
        q = build_insert(m, NOW)
        assert q.sql == (
            "insert into managed_fields_models (name,created_at,updated_at) values (?,?,?)"
        )
        assert q.args == ["n", NOW.isoformat(), NOW.isoformat()]
        assert q.writeback == {"created_at": NOW, "updated_at": NOW}
        # The builder never mutates the model
        assert m.created_at == datetime(2000, 1, 1)

    def test_insert_id_only_model(self):
        assert build_insert(OnlyId(), NOW).sql == "insert into only_ids default values"

    def test_insert_rejects_bad_targets(self):
        with pytest.raises(InvalidModelArg):
            build_insert(list[Model], NOW)
        with pytest.raises(MissingIDField):
            build_insert(IdMissingModel(), NOW)


class TestUpdate:
    """Test update builder."""

    def test_update_by_id(self):
        q = build_update(Model(id=3, bool=False, string="def"), NOW)
        assert isinstance(q, UpdateQuery)
        assert q.to_sql() == ("update models set bool=?,string=? where id = ?", [False, "def", 3])

    def test_update_keeps_created_at(self):
        q = build_update(ManagedFieldsModel(id=2, name="n"), NOW)
        assert q.sql == "update managed_fields_models set name=?,updated_at=? where id = ?"
        assert q.args == ["n", NOW.isoformat(), 2]
        assert q.writeback == {"updated_at": NOW}

    def test_update_id_only_model(self):
        assert build_update(OnlyId(id=1), NOW).sql == "update only_ids set id=id where id = ?"


class TestUpsert:
    """Test upsert builder."""

    def test_upsert_carries_target_and_clock(self):
        """The clock is handed to the executor unread."""
        calls = []

        def clock():
            calls.append(1)
            return NOW

        m = Model()
        q = build_upsert(m, clock)
        assert isinstance(q, UpsertQuery)
        assert q.target is m
        assert q.clock is clock
        assert calls == []
        assert q.writes

    def test_upsert_rejects_bad_targets(self):
        with pytest.raises(InvalidModelArg):
            build_upsert(Model, lambda: NOW)
        with pytest.raises(MissingIDField):
            build_upsert(IdMissingModel(), lambda: NOW)


class TestDelete:
    """Test delete builder."""

    def test_delete_by_ids(self):
        models = [Model(id=1), Model(id=4)]
        q = build_delete(models)
        assert isinstance(q, DeleteQuery)
        assert q.to_sql() == ("delete from models where id in (?,?)", [1, 4])
        assert q.models == models

    def test_delete_rejects_bad_targets(self):
        with pytest.raises(InvalidModelsArg):
            build_delete([])
        with pytest.raises(InvalidModelsArg):
            build_delete([Model(), ManagedFieldsModel()])
        with pytest.raises(InvalidModelsArg):
            build_delete(Model())
        with pytest.raises(MissingIDField):
            build_delete([IdMissingModel()])
