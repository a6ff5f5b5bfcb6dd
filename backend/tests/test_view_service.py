"""
Tests for saved views: default provisioning, ownership and column checks
"""
import json

import pytest

from scopegrid.core.exceptions import Forbidden, NotFound, ValidationError
from scopegrid.models.audit import AuditLog
from scopegrid.models.views import DEFAULT_VIEW_NAME, View
from scopegrid.schemas.views import ViewCreate, ViewUpdate
from scopegrid.services.view_service import ViewService

PERMITTED = ["id", "website", "niche", "price"]


@pytest.fixture
def owner(make_user):
    return make_user("sales")


def _create(db, owner, name="Cheap tech", **fields):
    data = ViewCreate(view_name=name, columns=fields.pop("columns", ["website", "price"]), **fields)
    return ViewService(db).create(owner.id, "sites", data, PERMITTED)


class TestDefaultView:
    def test_created_once_with_permitted_columns(self, db, owner):
        service = ViewService(db)
        first = service.get_or_create_default(owner.id, "sites", PERMITTED)
        second = service.get_or_create_default(owner.id, "sites", ["id"])

        assert first.id == second.id
        assert first.view_name == DEFAULT_VIEW_NAME
        assert second.columns == PERMITTED
        assert (first.filters, first.sort, first.group_by) == ({}, [], [])
        assert db.query(View).filter(View.user_id == owner.id).count() == 1

    def test_one_default_per_table(self, db, owner):
        service = ViewService(db)
        sites_view = service.get_or_create_default(owner.id, "sites", PERMITTED)
        master_view = service.get_or_create_default(owner.id, "masterdata", ["id"])
        assert sites_view.id != master_view.id


class TestCreate:
    def test_filters_and_sort_are_stored_sanitized(self, db, owner):
        view = _create(
            db, owner,
            filters={"AND": [{"price": {"lte": 100}}, {"bank_details": {"contains": "x"}}]},
            sort=[{"bank_details": "asc"}, {"price": "desc"}],
            group_by=["niche", "bank_details"],
        )
        assert view.filters == {"AND": [{"price": {"lte": 100}}]}
        assert view.sort == [{"price": "desc"}]
        assert view.group_by == ["niche"]

    def test_unpermitted_column_is_rejected(self, db, owner):
        with pytest.raises(ValidationError) as exc_info:
            _create(db, owner, columns=["website", "bank_details"])
        assert exc_info.value.message == "Invalid columns in view"
        assert exc_info.value.detail == {"columns": ["bank_details"]}
        assert db.query(View).count() == 0

    def test_duplicate_name_is_rejected(self, db, owner):
        _create(db, owner)
        with pytest.raises(ValidationError):
            _create(db, owner)

    def test_same_name_for_different_users(self, db, owner, make_user):
        _create(db, owner)
        _create(db, make_user("sales"))
        assert db.query(View).count() == 2

    @pytest.mark.parametrize("filters", [
        {"price": {"between": [1, 2]}},
        {"price": {"not": {"bank_details": 1}}},
        {"OR": [{"website": {"contains": "a"}}, {"price": {"near": 5}}]},
    ])
    def test_unexecutable_filter_is_rejected(self, db, owner, filters):
        with pytest.raises(ValidationError):
            _create(db, owner, filters=filters)
        assert db.query(View).count() == 0

    def test_creation_is_audited(self, db, owner):
        view = _create(db, owner)
        entry = db.query(AuditLog).filter(AuditLog.table_name == "user_views").one()
        assert entry.action_type == "INSERT"
        assert entry.record_primary_key == str(view.id)


class TestOwnership:
    def test_other_users_view_is_forbidden_and_untouched(self, db, owner, make_user):
        view = _create(db, owner)
        intruder = make_user("sales")

        with pytest.raises(Forbidden):
            ViewService(db).update(view.id, intruder.id, "sites", ViewUpdate(view_name="Mine now"), PERMITTED)
        with pytest.raises(Forbidden):
            ViewService(db).delete(view.id, intruder.id, "sites")

        db.expire_all()
        assert db.query(View).filter(View.id == view.id).one().view_name == "Cheap tech"

    def test_view_of_another_table_is_forbidden(self, db, owner):
        view = _create(db, owner)
        with pytest.raises(Forbidden):
            ViewService(db).get_owned(view.id, owner.id, "masterdata")

    def test_missing_view(self, db, owner):
        with pytest.raises(NotFound):
            ViewService(db).get_owned(999, owner.id, "sites")


class TestUpdateDelete:
    def test_partial_update(self, db, owner):
        view = _create(db, owner)
        updated = ViewService(db).update(
            view.id, owner.id, "sites",
            ViewUpdate(filters={"niche": "tech", "bank_details": "x"}),
            PERMITTED,
        )
        assert updated.filters == {"niche": {"equals": "tech"}}
        assert updated.columns == ["website", "price"]
        assert updated.view_name == "Cheap tech"

    def test_update_rejects_unpermitted_columns(self, db, owner):
        view = _create(db, owner)
        with pytest.raises(ValidationError):
            ViewService(db).update(view.id, owner.id, "sites", ViewUpdate(columns=["secret"]), PERMITTED)

    def test_update_with_unknown_operator_leaves_view_untouched(self, db, owner):
        view = _create(db, owner, filters={"price": {"gte": 300}})
        with pytest.raises(ValidationError):
            ViewService(db).update(
                view.id, owner.id, "sites",
                ViewUpdate(view_name="Renamed", filters={"price": {"between": [1, 2]}}),
                PERMITTED,
            )

        db.expire_all()
        stored = db.get(View, view.id)
        assert stored.view_name == "Cheap tech"
        assert stored.filters == {"price": {"gte": 300}}

    def test_rename_onto_existing_name(self, db, owner):
        _create(db, owner, name="First")
        second = _create(db, owner, name="Second")
        with pytest.raises(ValidationError):
            ViewService(db).update(second.id, owner.id, "sites", ViewUpdate(view_name="First"), PERMITTED)

    def test_update_is_audited_with_changed_columns(self, db, owner):
        view = _create(db, owner)
        ViewService(db).update(view.id, owner.id, "sites", ViewUpdate(sort=[{"id": "asc"}]), PERMITTED)

        entry = db.query(AuditLog).filter(AuditLog.action_type == "UPDATE").one()
        assert json.loads(entry.changed_columns) == ["sort"]

    def test_delete(self, db, owner):
        view = _create(db, owner)
        ViewService(db).delete(view.id, owner.id, "sites")
        assert db.query(View).count() == 0


def test_list_for_user_returns_id_and_name(db, owner, make_user):
    service = ViewService(db)
    default = service.get_or_create_default(owner.id, "sites", PERMITTED)
    saved = _create(db, owner)
    _create(db, make_user("sales"), name="Someone else")
    service.get_or_create_default(owner.id, "masterdata", ["id"])

    assert service.list_for_user(owner.id, "sites") == [
        {"id": default.id, "viewName": "grid"},
        {"id": saved.id, "viewName": "Cheap tech"},
    ]
