"""Pytest configuration and fixtures."""

import asyncio
from typing import Dict, List, Optional, Set

import pytest
from fastapi.testclient import TestClient

from propertypulse.api.auth import create_access_token
from propertypulse.api.dependencies import get_object_store
from propertypulse.api.main import app
from propertypulse.database.connection import dispose_engine, get_session_factory, init_db, init_engine
from propertypulse.exceptions import ObjectStoreError
from propertypulse.models.property_models import PropertyFields
from propertypulse.services.ingestion import ImageIngestionPipeline, SubmittedImage
from propertypulse.services.property_service import PropertyService
from propertypulse.services.submission import PropertySubmission
from propertypulse.storage.object_store import ObjectStore, StoredObject, build_object_key


class FakeObjectStore(ObjectStore):
    """In-memory object store with failure and latency injection."""

    def __init__(self, fail_on: Optional[Set[str]] = None, delays: Optional[Dict[str, float]] = None,
                 fail_deletes: bool = False):
        self.fail_on = fail_on or set()
        self.delays = delays or {}
        self.fail_deletes = fail_deletes
        self.objects: Dict[str, bytes] = {}
        self.attempted: List[str] = []
        self.deleted: List[str] = []
        self.in_flight = 0
        self.max_in_flight = 0

    async def upload(self, data: bytes, filename: str, folder: str) -> StoredObject:
        self.attempted.append(filename)
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            await asyncio.sleep(self.delays.get(filename, 0))
            if filename in self.fail_on:
                raise ObjectStoreError(f"Upload of {filename} failed")
            key = build_object_key(filename, folder)
            self.objects[key] = data
            return StoredObject(key=key, url=f"https://images.test/{key}")
        finally:
            self.in_flight -= 1

    async def delete(self, key: str) -> None:
        if self.fail_deletes:
            raise ObjectStoreError(f"Delete of {key} failed")
        self.objects.pop(key, None)
        self.deleted.append(key)


def run(coro):
    """Run a coroutine to completion."""
    return asyncio.run(coro)


def image(name: str, content: bytes = b"\x89PNG-data") -> SubmittedImage:
    return SubmittedImage(filename=name, content=content, content_type="image/png")


def submitted(fields: PropertyFields, images=()) -> PropertySubmission:
    return PropertySubmission.of(fields, images)


@pytest.fixture
def object_store() -> FakeObjectStore:
    return FakeObjectStore()


@pytest.fixture
def db_session():
    """Session on a fresh in-memory database."""
    dispose_engine()
    init_engine("sqlite://")
    init_db()
    session = get_session_factory()()
    try:
        yield session
    finally:
        session.close()
        dispose_engine()


@pytest.fixture
def pipeline(object_store) -> ImageIngestionPipeline:
    return ImageIngestionPipeline(object_store, folder="propertypulse", max_concurrency=2)


@pytest.fixture
def service(db_session, pipeline) -> PropertyService:
    return PropertyService(db_session, pipeline, cleanup_on_failure=True)


@pytest.fixture
def sample_fields() -> PropertyFields:
    return PropertyFields(
        type="Apartment",
        name="Lakeside Loft",
        description="Bright loft with a view of the lake",
        location={"street": "12 Shore Rd", "city": "Burlington", "state": "VT", "zipcode": "05401"},
        beds=2,
        baths=1.5,
        square_feet=900,
        amenities=["Wifi", "Dishwasher"],
        rates={"weekly": 700, "monthly": 2500},
        seller_info={"name": "Dana", "email": "dana@example.com", "phone": "555-0100"},
    )


@pytest.fixture
def sample_form() -> dict:
    """Flat multipart fields as the listing form posts them."""
    return {
        "type": "Cabin",
        "name": "Pine Cabin",
        "description": "Quiet cabin in the woods",
        "location.street": "1 Forest Way",
        "location.city": "Warren",
        "location.state": "VT",
        "location.zipcode": "05674",
        "beds": "3",
        "baths": "2",
        "square_feet": "1400",
        "amenities": ["Fireplace", "Wifi"],
        "rates.weekly": "",
        "rates.monthly": "3200",
        "rates.nightly.": "150",
        "seller_info.name": "Sam",
        "seller_info.email": "sam@example.com",
        "seller_info.phone": "555-0199",
    }


@pytest.fixture
def owner_id() -> str:
    return "owner123"


@pytest.fixture
def auth_headers(owner_id) -> dict:
    return {"Authorization": f"Bearer {create_access_token(owner_id)}"}


@pytest.fixture
def other_headers() -> dict:
    return {"Authorization": f"Bearer {create_access_token('intruder')}"}


@pytest.fixture
def client(object_store):
    """Test client on a fresh in-memory database and a fake object store."""
    dispose_engine()
    init_engine("sqlite://")
    app.dependency_overrides[get_object_store] = lambda: object_store
    try:
        with TestClient(app) as test_client:
            yield test_client
    finally:
        app.dependency_overrides.clear()
        dispose_engine()
