from datetime import datetime, timedelta, timezone

from portfolio.models import ImageRecord, ImageCategory

NOW = datetime(2025, 6, 1, tzinfo=timezone.utc)


def stored_image(name, category=ImageCategory.GALLERY, subcategory=None, sort_order=None, age_days=0):
    return ImageRecord(
        id=name,
        url=f"https://res.cloudinary.com/demo/image/upload/v1/{name}.webp",
        filename=f"{name}.webp",
        category=category,
        subcategory=subcategory,
        sort_order=sort_order,
        uploaded_at=NOW - timedelta(days=age_days),
    )


async def test_health(client):
    resp = await client.get("/health")

    assert resp.status_code == 200
    assert resp.json()["status"] == "healthy"


async def test_categories_listing(client):
    resp = await client.get("/api/categories")

    categories = {c["category"]: c["subcategories"] for c in resp.json()}
    assert set(categories) == {"featured", "gallery", "store", "collaborations", "about"}
    assert "prints" in categories["store"]


async def test_list_images_mixed_ordering(client, seed):
    await seed(
        stored_image("A", sort_order=2, age_days=3),
        stored_image("B", sort_order=1, age_days=3),
        stored_image("C", age_days=3),
        stored_image("D", age_days=1),
    )

    resp = await client.get("/api/images", params={"category": "gallery"})

    assert resp.status_code == 200
    assert [img["id"] for img in resp.json()] == ["B", "A", "D", "C"]
    assert resp.json()[0]["sortOrder"] == 1
    assert "uploadedAt" in resp.json()[0]


async def test_list_images_subcategory_filter(client, seed):
    await seed(
        stored_image("print", ImageCategory.STORE, "prints"),
        stored_image("shirt", ImageCategory.STORE, "apparel"),
    )

    resp = await client.get("/api/images", params={"category": "store", "subcategory": "prints"})

    assert [img["id"] for img in resp.json()] == ["print"]


async def test_empty_category_is_an_empty_list(client):
    resp = await client.get("/api/images", params={"category": "collaborations"})

    assert resp.status_code == 200
    assert resp.json() == []


async def test_unknown_category_is_a_validation_error(client):
    resp = await client.get("/api/images", params={"category": "guestbook"})

    assert resp.status_code == 400


async def test_random_images(client, seed):
    await seed(*[stored_image(f"img-{i}", ImageCategory.FEATURED, "hero-images", age_days=i) for i in range(4)])

    resp = await client.get(
        "/api/images/random",
        params={"category": "featured", "subcategory": "hero-images", "count": 3},
    )

    ids = [img["id"] for img in resp.json()]
    assert len(ids) == 3
    assert len(set(ids)) == 3


async def test_reads_degrade_without_backend(offline_client):
    images = await offline_client.get("/api/images", params={"category": "gallery"})
    featured = await offline_client.get("/api/settings/featured-text")
    health = await offline_client.get("/health/db")

    assert images.status_code == 200
    assert images.json() == []
    assert featured.json()["title"] == "About This Piece"
    assert health.json()["database"] == "not_configured"


async def test_setting_defaults(client):
    assert (await client.get("/api/settings/banner-purchase-url")).json() == {"url": ""}
    assert (await client.get("/api/settings/background-image")).json() == {"url": None}


async def test_unknown_setting_key(client):
    assert (await client.get("/api/settings/guest-book")).status_code == 400
