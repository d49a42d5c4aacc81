import uuid
from decimal import Decimal
from unittest.mock import AsyncMock, MagicMock

import pytest
import pytest_asyncio
from fastapi import HTTPException, status
from httpx import ASGITransport, AsyncClient

from app.core.errors import StorageFailure, UploadFailure
from app.dependencies.auth import get_current_user
from app.dependencies.services import get_property_service
from app.main import app
from app.services.properties import PropertyService

MOCK_OWNER = {"id": 1, "role": "Landlord"}
MOCK_OTHER = {"id": 2, "role": "Landlord"}

NEW_PROPERTY = {
    "name": "Maple Court",
    "description": "Two-unit house near the park",
    "property_type": "house",
    "address": {"street_address": "12 Maple St", "city": "Austin", "state": "TX", "zip_code": "78701"},
    "tags": ["downtown"],
    "units": [
        {"unit_number": "U1", "monthly_rent": 1200, "status": "available"},
        {"unit_number": "U2", "monthly_rent": 1300, "status": "rented"},
    ],
}

async def override_get_current_user_owner():
    return MOCK_OWNER

async def override_get_current_user_other():
    return MOCK_OTHER

async def override_get_current_user_unauthenticated():
    raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Not authenticated")

@pytest.fixture
def owner_auth_override():
    app.dependency_overrides[get_current_user] = override_get_current_user_owner
    yield
    app.dependency_overrides.pop(get_current_user, None)

@pytest.fixture
def real_service(session_factory, image_store, events):
    async def override_get_property_service():
        async with session_factory() as session:
            yield PropertyService(session, image_store=image_store, events=events)

    app.dependency_overrides[get_property_service] = override_get_property_service
    yield
    app.dependency_overrides.pop(get_property_service, None)

@pytest.fixture
def mock_service():
    service = MagicMock(spec=PropertyService)
    for name in ("get_property", "create_property", "upload_image", "search_properties"):
        setattr(service, name, AsyncMock())
    app.dependency_overrides[get_property_service] = lambda: service
    yield service
    app.dependency_overrides.pop(get_property_service, None)

@pytest_asyncio.fixture
async def client():
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        yield client

@pytest.mark.asyncio
async def test_create_and_fetch_property(client, owner_auth_override, real_service):
    response = await client.post("/api/v1/properties", json=NEW_PROPERTY)
    assert response.status_code == status.HTTP_201_CREATED
    created = response.json()
    assert created["owner_id"] == "1"
    assert created["address"]["country"] == "United States"
    assert [u["unit_number"] for u in created["units"]] == ["U1", "U2"]

    response = await client.get(f"/api/v1/properties/{created['id']}")
    assert response.status_code == status.HTTP_200_OK
    body = response.json()
    assert body["occupancy_rate"] == 50.0
    assert Decimal(body["total_monthly_revenue"]) == Decimal("1300")
    assert body["view_count"] == 1

@pytest.mark.asyncio
async def test_other_owner_gets_404(client, owner_auth_override, real_service):
    created = (await client.post("/api/v1/properties", json=NEW_PROPERTY)).json()

    app.dependency_overrides[get_current_user] = override_get_current_user_other
    response = await client.get(f"/api/v1/properties/{created['id']}")
    assert response.status_code == status.HTTP_404_NOT_FOUND
    assert response.json()["detail"] == "Property not found or access denied"

    response = await client.delete(f"/api/v1/properties/{created['id']}")
    assert response.status_code == status.HTTP_404_NOT_FOUND

@pytest.mark.asyncio
async def test_patch_and_delete_property(client, owner_auth_override, real_service, events):
    created = (await client.post("/api/v1/properties", json=NEW_PROPERTY)).json()

    response = await client.patch(
        f"/api/v1/properties/{created['id']}", json={"status": "published", "increment_favorite_count": True}
    )
    assert response.status_code == status.HTTP_200_OK
    assert response.json()["status"] == "published"
    assert response.json()["favorite_count"] == 1

    response = await client.patch(f"/api/v1/properties/{created['id']}", json={"name": None})
    assert response.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY

    response = await client.delete(f"/api/v1/properties/{created['id']}")
    assert response.status_code == status.HTTP_204_NO_CONTENT
    response = await client.get(f"/api/v1/properties/{created['id']}")
    assert response.status_code == status.HTTP_404_NOT_FOUND
    assert [name for name, _ in events.published] == ["property.created", "property.updated", "property.deleted"]

@pytest.mark.asyncio
async def test_search_with_tags_and_paging(client, owner_auth_override, real_service):
    await client.post("/api/v1/properties", json=NEW_PROPERTY)
    await client.post("/api/v1/properties", json={**NEW_PROPERTY, "name": "Cedar House", "tags": []})

    response = await client.get("/api/v1/properties/search?tags=downtown&city=aus&limit=5&sort=name&order=asc")
    assert response.status_code == status.HTTP_200_OK
    body = response.json()
    assert body["total"] == 1
    assert body["limit"] == 5
    assert [p["name"] for p in body["items"]] == ["Maple Court"]

    response = await client.get("/api/v1/properties/mine?sort=name&order=asc")
    assert [p["name"] for p in response.json()["items"]] == ["Cedar House", "Maple Court"]

@pytest.mark.asyncio
async def test_search_rejects_inverted_range(client, owner_auth_override, real_service):
    response = await client.get("/api/v1/properties/search?min_rent=2000&max_rent=1000")
    assert response.status_code == status.HTTP_400_BAD_REQUEST
    assert response.json()["detail"] == "min_rent cannot be greater than max_rent"

@pytest.mark.asyncio
async def test_search_rejects_oversized_page(client, owner_auth_override, real_service):
    response = await client.get("/api/v1/properties/search?limit=500")
    assert response.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY

@pytest.mark.asyncio
async def test_units_and_statistics(client, owner_auth_override, real_service):
    created = (await client.post("/api/v1/properties", json=NEW_PROPERTY)).json()

    response = await client.post(f"/api/v1/properties/{created['id']}/units", json={"monthly_rent": 800})
    assert response.status_code == status.HTTP_201_CREATED
    assert response.json()["unit_number"] == "1"

    response = await client.get(f"/api/v1/properties/{created['id']}/units?min_rent=1250")
    assert [u["unit_number"] for u in response.json()["items"]] == ["U2"]

    response = await client.get(f"/api/v1/properties/{created['id']}/units/{uuid.uuid4()}")
    assert response.status_code == status.HTTP_404_NOT_FOUND

    response = await client.get("/api/v1/properties/statistics")
    assert response.status_code == status.HTTP_200_OK
    stats = response.json()
    assert stats["total_properties"] == 1
    assert stats["total_units"] == 3
    assert stats["by_status"]["draft"] == 1

@pytest.mark.asyncio
async def test_image_upload_and_primary(client, owner_auth_override, real_service, image_store):
    created = (await client.post("/api/v1/properties", json=NEW_PROPERTY)).json()
    url = f"/api/v1/properties/{created['id']}/images"

    response = await client.post(
        url, files={"file": ("front.jpg", b"jpeg-bytes", "image/jpeg")}, data={"is_primary": "true"}
    )
    assert response.status_code == status.HTTP_201_CREATED
    first = response.json()
    assert first["format"] == "jpg"
    assert first["file_size_bytes"] == len(b"jpeg-bytes")

    second = (await client.post(url, files={"file": ("back.png", b"png", "image/png")})).json()
    response = await client.put(f"{url}/{second['id']}/primary")
    assert response.status_code == status.HTTP_200_OK

    images = (await client.get(url)).json()
    assert [i["id"] for i in images if i["is_primary"]] == [second["id"]]

    response = await client.delete(f"{url}/{first['id']}")
    assert response.status_code == status.HTTP_204_NO_CONTENT
    assert image_store.deleted == [first["image_url"]]

@pytest.mark.asyncio
async def test_batch_upload_skips_empty_files(client, owner_auth_override, real_service, image_store):
    created = (await client.post("/api/v1/properties", json=NEW_PROPERTY)).json()
    url = f"/api/v1/properties/{created['id']}/images"

    response = await client.post(
        f"{url}/batch",
        files=[
            ("files", ("kitchen.jpg", b"kitchen", "image/jpeg")),
            ("files", ("empty.jpg", b"", "image/jpeg")),
            ("files", ("bath.png", b"bath", "image/png")),
        ],
        data={"image_type": "exterior"},
    )
    assert response.status_code == status.HTTP_201_CREATED
    uploaded = response.json()
    assert len(uploaded) == 2
    assert {i["image_type"] for i in uploaded} == {"exterior"}
    assert image_store.uploads == 2
    assert len((await client.get(url)).json()) == 2

    response = await client.post(f"{url}/batch", files=[("files", ("empty.jpg", b"", "image/jpeg"))])
    assert response.status_code == status.HTTP_400_BAD_REQUEST
    assert response.json()["detail"] == "No files provided"

@pytest.mark.asyncio
async def test_statistics_for_another_owner(client, owner_auth_override, real_service):
    await client.post("/api/v1/properties", json=NEW_PROPERTY)

    app.dependency_overrides[get_current_user] = override_get_current_user_other
    response = await client.get("/api/v1/properties/owner/1/statistics")
    assert response.status_code == status.HTTP_200_OK
    stats = response.json()
    assert stats["owner_id"] == "1"
    assert stats["total_properties"] == 1
    assert stats["total_units"] == 2

    response = await client.get("/api/v1/properties/statistics")
    assert response.json()["total_properties"] == 0

@pytest.mark.asyncio
async def test_unauthenticated_request(client, real_service):
    app.dependency_overrides[get_current_user] = override_get_current_user_unauthenticated
    try:
        response = await client.get("/api/v1/properties/mine")
    finally:
        app.dependency_overrides.pop(get_current_user, None)
    assert response.status_code == status.HTTP_401_UNAUTHORIZED

@pytest.mark.asyncio
async def test_invalid_property_id(client, owner_auth_override, real_service):
    response = await client.get("/api/v1/properties/not-a-uuid")
    assert response.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY

@pytest.mark.asyncio
async def test_storage_failure_hides_backend_error(client, owner_auth_override, mock_service):
    mock_service.get_property.side_effect = StorageFailure()
    response = await client.get(f"/api/v1/properties/{uuid.uuid4()}")
    assert response.status_code == status.HTTP_500_INTERNAL_SERVER_ERROR
    assert response.json()["detail"] == "Failed to fetch property"

@pytest.mark.asyncio
async def test_unexpected_error_is_500(client, owner_auth_override, mock_service):
    mock_service.search_properties.side_effect = RuntimeError("connection reset by peer")
    response = await client.get("/api/v1/properties/search")
    assert response.status_code == status.HTTP_500_INTERNAL_SERVER_ERROR
    assert response.json()["detail"] == "Search failed"

@pytest.mark.asyncio
async def test_upload_failure_is_502(client, owner_auth_override, mock_service):
    mock_service.upload_image.side_effect = UploadFailure()
    response = await client.post(
        f"/api/v1/properties/{uuid.uuid4()}/images", files={"file": ("a.jpg", b"x", "image/jpeg")}
    )
    assert response.status_code == status.HTTP_502_BAD_GATEWAY
    assert response.json()["detail"] == "Image upload failed"
