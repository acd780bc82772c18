import json

import httpx
import pytest

from app.services.storage import LocalStorage, StorageError, SupabaseStorage, build_object_name

BASE_URL = "https://project.supabase.co"


def _storage(handler):
    return SupabaseStorage(BASE_URL, "service-key", "photos", transport=httpx.MockTransport(handler))


def test_build_object_name_keeps_extension():
    name = build_object_name("p1_SUT25-E001", "Me.JPG")
    assert name.startswith("p1_SUT25-E001_")
    assert name.endswith(".jpg")
    assert build_object_name("x", "photo.png") != build_object_name("x", "photo.png")


def test_build_object_name_without_extension():
    name = build_object_name("slip_SUT25-A001", "slip")
    assert "." not in name


@pytest.mark.asyncio
async def test_upload_returns_public_url():
    requests = []

    def handler(request: httpx.Request):
        requests.append(request)
        return httpx.Response(200, json={"Key": "photos/whatever"})

    url = await _storage(handler).upload(b"jpeg-bytes", "image/jpeg", "p1_SUT25-E001", "a.jpg")

    assert len(requests) == 1
    request = requests[0]
    assert request.method == "POST"
    assert request.url.path.startswith("/storage/v1/object/photos/p1_SUT25-E001_")
    assert request.headers["Authorization"] == "Bearer service-key"
    assert request.headers["x-upsert"] == "true"
    assert request.headers["Content-Type"] == "image/jpeg"
    assert request.content == b"jpeg-bytes"

    name = request.url.path.rsplit("/", 1)[1]
    assert url == f"{BASE_URL}/storage/v1/object/public/photos/{name}"


@pytest.mark.asyncio
async def test_upload_error_response_raises():
    storage = _storage(lambda request: httpx.Response(400, json={"error": "Bucket not found"}))
    with pytest.raises(StorageError):
        await storage.upload(b"data", "image/png", "p2_SUT25-E001", "b.png")


@pytest.mark.asyncio
async def test_upload_network_error_raises():
    def handler(request):
        raise httpx.ConnectError("connection refused")

    with pytest.raises(StorageError):
        await _storage(handler).upload(b"data", "image/png", "p2_SUT25-E001", "b.png")


@pytest.mark.asyncio
async def test_upload_empty_payload_raises():
    def handler(request):
        raise AssertionError("no request expected")

    with pytest.raises(StorageError):
        await _storage(handler).upload(b"", "image/png", "p1", "a.png")


@pytest.mark.asyncio
async def test_remove_deletes_object_by_name():
    requests = []

    def handler(request: httpx.Request):
        requests.append(request)
        return httpx.Response(200, json=[])

    storage = _storage(handler)
    await storage.remove(storage.public_url("p1_SUT25-E001_abc.jpg"))

    assert requests[0].method == "DELETE"
    assert requests[0].url.path == "/storage/v1/object/photos"
    assert json.loads(requests[0].content) == {"prefixes": ["p1_SUT25-E001_abc.jpg"]}


@pytest.mark.asyncio
async def test_remove_foreign_url_raises():
    storage = _storage(lambda request: httpx.Response(200))
    with pytest.raises(StorageError):
        await storage.remove("https://elsewhere.example/photo.jpg")


@pytest.mark.asyncio
async def test_local_storage_round_trip(tmp_path):
    storage = LocalStorage(str(tmp_path / "media"), "http://localhost:8000")
    url = await storage.upload(b"qr", "image/png", "config_qr_code", "qr.png")

    assert url.startswith("http://localhost:8000/media/config_qr_code_")
    name = url.rsplit("/", 1)[1]
    assert (tmp_path / "media" / name).read_bytes() == b"qr"

    await storage.remove(url)
    assert not (tmp_path / "media" / name).exists()
