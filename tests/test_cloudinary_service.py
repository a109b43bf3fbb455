import pytest
from cloudinary.exceptions import Error as CloudinaryError

from portfolio.services import cloudinary_service
from portfolio.services.cloudinary_service import (
    delete_image,
    extract_public_id_from_url,
    storage_filename,
    storage_folder,
    storage_public_id,
    upload_image,
)


@pytest.fixture(autouse=True)
def no_backoff(monkeypatch):
    async def instant(seconds):
        return None
    monkeypatch.setattr(cloudinary_service.asyncio, "sleep", instant)


def test_storage_paths():
    assert storage_folder("gallery") == "gallery"
    assert storage_folder("store", "prints") == "store/prints"
    assert storage_filename("sunset.jpg", 1700000000000) == "1700000000000_sunset.jpg"
    assert storage_filename("../../etc/passwd", 1) == "1_passwd"
    assert storage_public_id("1_sunset.final.jpg") == "1_sunset.final"


@pytest.mark.parametrize("url, expected", [
    ("https://res.cloudinary.com/demo/image/upload/v1712/store/prints/17_print.webp", "store/prints/17_print"),
    ("https://res.cloudinary.com/demo/image/upload/gallery/17_a.b.jpg", "gallery/17_a.b"),
    ("https://res.cloudinary.com/demo/image/upload/v3/noext", "noext"),
])
def test_extract_public_id_from_url(url, expected):
    assert extract_public_id_from_url(url) == expected


def test_extract_public_id_rejects_foreign_urls():
    with pytest.raises(ValueError):
        extract_public_id_from_url("https://example.com/picture.jpg")


async def test_upload_retries_transient_errors(monkeypatch):
    calls = []

    def flaky_upload(file, **options):
        calls.append(options)
        if len(calls) < 3:
            raise CloudinaryError("503 from upstream")
        return {"secure_url": "https://res.cloudinary.com/demo/image/upload/v1/gallery/1_a.webp",
                "public_id": "gallery/1_a", "format": "webp", "bytes": 10}

    monkeypatch.setattr(cloudinary_service.cloudinary.uploader, "upload", flaky_upload)

    result = await upload_image(b"data", folder="gallery", public_id="1_a")

    assert result["public_id"] == "gallery/1_a"
    assert len(calls) == 3
    assert calls[0]["folder"] == "gallery"


async def test_upload_gives_up_after_max_retries(monkeypatch):
    def always_fails(file, **options):
        raise CloudinaryError("down")

    monkeypatch.setattr(cloudinary_service.cloudinary.uploader, "upload", always_fails)

    with pytest.raises(CloudinaryError):
        await upload_image(b"data", folder="gallery", max_retries=2)


@pytest.mark.parametrize("outcome", ["ok", "not found"])
async def test_delete_accepts_ok_and_not_found(monkeypatch, outcome):
    monkeypatch.setattr(cloudinary_service.cloudinary.uploader, "destroy", lambda public_id, **kw: {"result": outcome})

    assert (await delete_image("gallery/1_a"))["result"] == outcome


async def test_delete_raises_on_unexpected_result(monkeypatch):
    monkeypatch.setattr(cloudinary_service.cloudinary.uploader, "destroy", lambda public_id, **kw: {"result": "error"})

    with pytest.raises(CloudinaryError):
        await delete_image("gallery/1_a")
