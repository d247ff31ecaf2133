"""Tests for the property service operations."""

import pytest
from sqlalchemy.exc import OperationalError

from propertypulse.database.crud import PropertyCRUD
from propertypulse.exceptions import (
    AuthenticationRequired, AuthorizationDenied, IngestionError, InvalidRequest, NotFound,
    UpstreamFailure,
)
from propertypulse.models.property_models import Property, PropertyFields
from propertypulse.services.ingestion import ImageIngestionPipeline
from propertypulse.services.property_service import PropertyService
from propertypulse.services.submission import PropertySubmission

from .conftest import FakeObjectStore, image, run, submitted


def _fields(name="Home", type_="House", city="Springfield", description=None) -> PropertyFields:
    return PropertyFields(type=type_, name=name, description=description, location={"city": city})


def _create(service, owner="owner123", **kwargs) -> Property:
    return run(service.create_property(submitted(_fields(**kwargs), []), owner))


class TestCreateProperty:
    """Test property creation."""

    def test_round_trip(self, service, sample_fields, owner_id) -> None:
        created = run(service.create_property(submitted(sample_fields, [image("a.png")]), owner_id))

        fetched = service.get_property(created.id)
        assert fetched.owner == owner_id
        assert len(fetched.images) == 1
        assert fetched.is_featured is False
        for key, value in sample_fields.to_columns().items():
            assert getattr(fetched, key) == value

    def test_requires_identity(self, service, sample_fields, object_store, db_session) -> None:
        with pytest.raises(AuthenticationRequired):
            run(service.create_property(submitted(sample_fields, [image("a.png")]), None))

        assert object_store.attempted == []
        assert PropertyCRUD.count(db_session) == 0

    def test_identity_is_checked_before_fields(self, service) -> None:
        with pytest.raises(AuthenticationRequired):
            run(service.create_property(PropertySubmission([("description", "x")]), None))

    def test_invalid_fields_upload_nothing(self, service, object_store, owner_id) -> None:
        with pytest.raises(InvalidRequest):
            run(service.create_property(PropertySubmission([("description", "x")]), owner_id))

        assert object_store.attempted == []

    def test_ingestion_failure_persists_nothing(self, db_session, sample_fields, owner_id) -> None:
        store = FakeObjectStore(fail_on={"second.png"})
        pipeline = ImageIngestionPipeline(store, folder="propertypulse", max_concurrency=1)
        service = PropertyService(db_session, pipeline, cleanup_on_failure=True)

        with pytest.raises(IngestionError) as exc_info:
            run(service.create_property(
                submitted(sample_fields, [image("first.png"), image("second.png")]), owner_id
            ))

        assert exc_info.value.stored_count == 1
        assert db_session.query(Property).filter_by(name=sample_fields.name, owner=owner_id).count() == 0
        # First upload was removed again
        assert store.objects == {}
        assert len(store.deleted) == 1

    def test_ingestion_failure_without_cleanup_leaves_orphans(self, db_session, sample_fields, owner_id) -> None:
        store = FakeObjectStore(fail_on={"second.png"})
        pipeline = ImageIngestionPipeline(store, folder="propertypulse", max_concurrency=1)
        service = PropertyService(db_session, pipeline, cleanup_on_failure=False)

        with pytest.raises(IngestionError):
            run(service.create_property(
                submitted(sample_fields, [image("first.png"), image("second.png")]), owner_id
            ))

        assert len(store.objects) == 1
        assert PropertyCRUD.count(db_session) == 0

    def test_empty_named_images_are_skipped(self, service, sample_fields, object_store, owner_id) -> None:
        created = run(service.create_property(
            submitted(sample_fields, [image(""), image("kept.png"), image("")]), owner_id
        ))

        assert object_store.attempted == ["kept.png"]
        assert len(created.images) == 1

    def test_images_are_in_submission_order(self, db_session, sample_fields, owner_id) -> None:
        store = FakeObjectStore(delays={"a.png": 0.02})
        pipeline = ImageIngestionPipeline(store, folder="propertypulse", max_concurrency=2)
        service = PropertyService(db_session, pipeline)

        created = run(service.create_property(
            submitted(sample_fields, [image("a.png", b"A"), image("b.png", b"B")]), owner_id
        ))

        keys = [url.split("https://images.test/")[1] for url in created.images]
        assert [store.objects[k] for k in keys] == [b"A", b"B"]

    def test_no_images_gives_empty_sequence(self, service, sample_fields, owner_id) -> None:
        created = run(service.create_property(submitted(sample_fields, []), owner_id))
        assert created.images == []

    def test_store_failure_removes_uploaded_images(self, service, sample_fields, object_store,
                                                   owner_id, monkeypatch) -> None:
        def broken_create(*args, **kwargs):
            raise OperationalError("INSERT", {}, Exception("database is gone"))

        monkeypatch.setattr(PropertyCRUD, "create", staticmethod(broken_create))

        with pytest.raises(UpstreamFailure):
            run(service.create_property(submitted(sample_fields, [image("a.png")]), owner_id))

        assert object_store.objects == {}


class TestUpdateProperty:
    """Test property updates."""

    def test_owner_can_update(self, service, owner_id) -> None:
        created = _create(service, owner=owner_id, name="Old name")

        updated = run(service.update_property(created.id, submitted(_fields(name="New name"), []), owner_id))

        assert updated.name == "New name"
        assert service.get_property(created.id).name == "New name"

    def test_owner_never_changes(self, service, owner_id) -> None:
        created = _create(service, owner=owner_id)
        updated = run(service.update_property(created.id, submitted(_fields(name="Renamed"), []), owner_id))
        assert updated.owner == owner_id

    def test_new_images_are_appended(self, service, sample_fields, owner_id) -> None:
        created = run(service.create_property(submitted(sample_fields, [image("a.png")]), owner_id))
        first = list(created.images)

        updated = run(service.update_property(created.id, submitted(sample_fields, [image("b.png")]), owner_id))

        assert updated.images[:1] == first
        assert len(updated.images) == 2

    def test_non_owner_is_denied(self, service, owner_id) -> None:
        created = _create(service, owner=owner_id, name="Mine")

        with pytest.raises(AuthorizationDenied):
            run(service.update_property(created.id, submitted(_fields(name="Stolen"), []), "intruder"))

        assert service.get_property(created.id).name == "Mine"

    def test_anonymous_is_rejected(self, service, owner_id) -> None:
        created = _create(service, owner=owner_id)

        with pytest.raises(AuthenticationRequired):
            run(service.update_property(created.id, submitted(_fields(), []), None))

    def test_missing_property(self, service, owner_id) -> None:
        with pytest.raises(NotFound):
            run(service.update_property("0" * 32, submitted(_fields(), []), owner_id))

    def test_ingestion_failure_leaves_property_unchanged(self, db_session, owner_id) -> None:
        store = FakeObjectStore(fail_on={"bad.png"})
        service = PropertyService(db_session, ImageIngestionPipeline(store, folder="propertypulse"))
        created = _create(service, owner=owner_id, name="Original")

        with pytest.raises(IngestionError):
            run(service.update_property(
                created.id, submitted(_fields(name="Changed"), [image("bad.png")]), owner_id
            ))

        db_session.expire_all()
        assert service.get_property(created.id).name == "Original"

    def test_non_owner_uploads_nothing(self, service, object_store, owner_id) -> None:
        created = _create(service, owner=owner_id)

        with pytest.raises(AuthorizationDenied):
            run(service.update_property(created.id, submitted(_fields(), [image("x.png")]), "intruder"))

        assert object_store.attempted == []

    def test_ownership_is_checked_before_fields(self, service, owner_id) -> None:
        created = _create(service, owner=owner_id)
        incomplete = PropertySubmission([("description", "x")])

        with pytest.raises(AuthenticationRequired):
            run(service.update_property(created.id, incomplete, None))
        with pytest.raises(AuthorizationDenied):
            run(service.update_property(created.id, incomplete, "intruder"))
        with pytest.raises(NotFound):
            run(service.update_property("0" * 32, incomplete, owner_id))
        with pytest.raises(InvalidRequest):
            run(service.update_property(created.id, incomplete, owner_id))


class TestDeleteProperty:
    """Test property deletion."""

    def test_owner_can_delete(self, service, owner_id) -> None:
        created = _create(service, owner=owner_id)

        service.delete_property(created.id, owner_id)

        with pytest.raises(NotFound):
            service.get_property(created.id)

    def test_non_owner_is_denied(self, service, owner_id) -> None:
        created = _create(service, owner=owner_id)

        with pytest.raises(AuthorizationDenied):
            service.delete_property(created.id, "intruder")

        assert service.get_property(created.id).id == created.id

    def test_anonymous_is_rejected(self, service, owner_id) -> None:
        created = _create(service, owner=owner_id)

        with pytest.raises(AuthenticationRequired):
            service.delete_property(created.id, None)

    def test_missing_property(self, service, owner_id) -> None:
        with pytest.raises(NotFound):
            service.delete_property("f" * 32, owner_id)


class TestQueries:
    """Test read operations."""

    @pytest.mark.parametrize("property_id", ["", "not-an-id", "12345", "Z" * 32])
    def test_malformed_id_is_not_found(self, service, property_id) -> None:
        with pytest.raises(NotFound):
            service.get_property(property_id)

    def test_list_properties_windows(self, service) -> None:
        ids = {_create(service, name=f"Home {i}").id for i in range(7)}

        first = service.list_properties(1, 3)
        second = service.list_properties(2, 3)
        third = service.list_properties(3, 3)

        assert first.total == second.total == third.total == 7
        assert [len(p.properties) for p in (first, second, third)] == [3, 3, 1]
        seen = {p.id for page in (first, second, third) for p in page.properties}
        assert seen == ids

    def test_list_properties_defaults(self, service) -> None:
        for i in range(8):
            _create(service, name=f"Home {i}")

        page = service.list_properties("abc", None)

        assert page.total == 8
        assert len(page.properties) == 6

    def test_list_properties_caps_page_size(self, db_session, pipeline) -> None:
        from propertypulse.config import APISettings

        service = PropertyService(db_session, pipeline, api_settings=APISettings(max_page_size=2))
        for i in range(4):
            _create(service, name=f"Home {i}")

        assert len(service.list_properties(1, 1000).properties) == 2

    @pytest.mark.parametrize("page", [3, "99999999999999999999"])
    def test_list_properties_past_the_end(self, service, page) -> None:
        for i in range(2):
            _create(service, name=f"Home {i}")

        result = service.list_properties(page, 2)

        assert result.total == 2
        assert result.properties == []

    def test_list_featured(self, service, db_session) -> None:
        featured = _create(service, name="Featured")
        _create(service, name="Plain")
        featured.is_featured = True
        db_session.commit()

        assert [p.name for p in service.list_featured()] == ["Featured"]

    def test_list_by_owner(self, service) -> None:
        _create(service, owner="owner123", name="A")
        _create(service, owner="owner123", name="B")
        _create(service, owner="someone", name="C")

        assert {p.name for p in service.list_by_owner("owner123")} == {"A", "B"}
        assert service.list_by_owner("nobody") == []

    @pytest.mark.parametrize("owner_id", ["", None, "  "])
    def test_list_by_owner_requires_id(self, service, owner_id) -> None:
        with pytest.raises(InvalidRequest):
            service.list_by_owner(owner_id)

    def test_search(self, service) -> None:
        _create(service, name="Lakeview Apartment", type_="Apartment")
        _create(service, name="Lake House", type_="House")
        _create(service, name="City Condo", type_="Condo")

        assert {p.name for p in service.search_properties("lake", "All")} == {"Lakeview Apartment", "Lake House"}
        assert {p.name for p in service.search_properties("lake", "Apartment")} == {"Lakeview Apartment"}
        assert service.search_properties("a.*", None) == []

    def test_store_failure_is_upstream_failure(self, service, monkeypatch) -> None:
        def broken_count(*args, **kwargs):
            raise OperationalError("SELECT", {}, Exception("database is gone"))

        monkeypatch.setattr(PropertyCRUD, "count", staticmethod(broken_count))

        with pytest.raises(UpstreamFailure):
            service.list_properties()

    def test_unexpected_error_is_upstream_failure(self, service, monkeypatch) -> None:
        def broken_find(*args, **kwargs):
            raise OverflowError("Python int too large to convert to SQLite INTEGER")

        monkeypatch.setattr(PropertyCRUD, "find", staticmethod(broken_find))

        with pytest.raises(UpstreamFailure) as exc_info:
            service.search_properties("lake")

        assert isinstance(exc_info.value.__cause__, OverflowError)
