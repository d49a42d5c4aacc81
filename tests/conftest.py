import os

# Settings are read at import time
os.environ["DATABASE_URL"] = "sqlite+aiosqlite://"
os.environ["RATE_LIMIT_ENABLED"] = "false"

from decimal import Decimal

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from app.core.errors import UploadFailure
from app.models import Base
from app.schemas.property import AddressIn, PropertyCreate
from app.schemas.unit import UnitCreate
from app.services.properties import PropertyService

OWNER = "owner-1"
OTHER_OWNER = "owner-2"


class FakeImageStore:
    def __init__(self):
        self.blobs = {}
        self.deleted = []
        self.fail_put = False
        self.uploads = 0

    async def put(self, content, metadata):
        if self.fail_put:
            raise UploadFailure()
        self.uploads += 1
        url = f"https://images.test/{self.uploads}/{metadata.get('filename') or 'image'}"
        self.blobs[url] = content
        return url

    async def delete(self, url):
        self.deleted.append(url)
        self.blobs.pop(url, None)


class FakeEvents:
    def __init__(self):
        self.published = []

    async def publish(self, event, payload):
        self.published.append((event, payload))
        return True


@pytest_asyncio.fixture
async def engine():
    engine = create_async_engine(
        "sqlite+aiosqlite://", poolclass=StaticPool, connect_args={"check_same_thread": False}
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest_asyncio.fixture
async def session_factory(engine):
    return async_sessionmaker(engine, expire_on_commit=False, class_=AsyncSession)


@pytest_asyncio.fixture
async def session(session_factory):
    async with session_factory() as session:
        yield session


@pytest.fixture
def image_store():
    return FakeImageStore()


@pytest.fixture
def events():
    return FakeEvents()


@pytest.fixture
def service(session, image_store, events):
    return PropertyService(session, image_store=image_store, events=events)


def make_property(name="Maple Court", city="Austin", units=(), **fields) -> PropertyCreate:
    return PropertyCreate(
        name=name,
        description=fields.pop("description", f"{name} description"),
        property_type=fields.pop("property_type", "house"),
        address=AddressIn(street_address="12 Maple St", city=city, state="TX", zip_code="78701"),
        units=[UnitCreate(**unit) for unit in units],
        **fields,
    )


@pytest.fixture
def new_property():
    return make_property


@pytest.fixture
def two_unit_house():
    """The reference scenario: one rented unit at 1300, one available at 1200."""
    return make_property(
        units=[
            {"unit_number": "U1", "monthly_rent": Decimal("1200"), "status": "available"},
            {"unit_number": "U2", "monthly_rent": Decimal("1300"), "status": "rented"},
        ],
    )
