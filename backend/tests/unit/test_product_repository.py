"""Tests for ProductRepository and DiscountRepository."""

from unittest.mock import AsyncMock

import pytest

from app.repositories.discount import DiscountRepository
from app.repositories.product import ProductRepository, SlugConflictError, slugify

pytestmark = pytest.mark.anyio


@pytest.mark.parametrize(
    "name, slug",
    [
        ("Kente Stole", "kente-stole"),
        ("  Kente Cloth (Gold & Green)! ", "kente-cloth-gold-green"),
        ("Shea---Butter 500g", "shea-butter-500g"),
        ("!!!", ""),
    ],
)
def test_slugify(name, slug):
    assert slugify(name) == slug


async def test_create_derives_slug_and_stores_json_fields(session):
    repo = ProductRepository(session)

    product = await repo.create_product({
        "name": "Kente Stole",
        "category": "Accessories",
        "price": 200,
        "colors": ["gold", "green"],
        "images": [{"url": "https://cdn.example.com/kente.jpg"}],
    })

    assert product.slug == "kente-stole"
    data = product.to_dict()
    assert data["colors"] == ["gold", "green"]
    assert data["images"] == [{"url": "https://cdn.example.com/kente.jpg"}]
    assert data["subcategories"] == []


async def test_duplicate_slug_rejected(session):
    repo = ProductRepository(session)
    await repo.create_product({"name": "Kente Stole", "category": "Accessories"})

    with pytest.raises(ValueError, match="already exists"):
        await repo.create_product({"name": "kente stole!", "category": "Accessories"})


async def test_bulk_create_rejects_duplicates_within_batch(session):
    repo = ProductRepository(session)

    with pytest.raises(ValueError):
        await repo.create_products([
            {"name": "Smock", "category": "Clothing"},
            {"name": "SMOCK", "category": "Clothing"},
        ])
    assert await repo.list_products() == []


async def test_name_without_letters_rejected(session):
    with pytest.raises(ValueError, match="letter or digit"):
        await ProductRepository(session).create_product({"name": "???", "category": "X"})


async def test_update_ignores_unknown_and_none_fields(session):
    repo = ProductRepository(session)
    await repo.create_product({"name": "Smock", "category": "Clothing", "price": 100})

    updated = await repo.update_product("smock", {"price": 120, "description": None, "slug": "hacked"})

    assert updated.price == 120
    assert updated.slug == "smock"
    assert await repo.update_product("missing", {"price": 1}) is None


async def test_list_filters_by_category(session, products):
    repo = ProductRepository(session)

    clothing = await repo.list_products(category="Clothing")

    assert {p.slug for p in clothing} == {"adinkra-shirt", "batakari-smock"}
    assert len(await repo.list_products()) == 3


async def test_delete_cascades_reviews(session, products):
    from app.repositories.review import ReviewRepository

    reviews = ReviewRepository(session)
    await reviews.create_review("kente-stole", "Ama", "Beautiful", 5)
    product = await ProductRepository(session).get_by_slug("kente-stole")

    deleted = await ProductRepository(session).delete_product(product.id)

    assert deleted.slug == "kente-stole"
    assert await reviews.list_for_product("kente-stole") == []


async def test_campaign_on_category_and_end_resets(session, products):
    discounts = DiscountRepository(session)
    repo = ProductRepository(session)

    campaign = await discounts.start_campaign("Independence Day", 20, category="Clothing")

    assert campaign.products_affected == 2
    assert campaign.scope == "category:Clothing"
    assert (await repo.get_by_slug("adinkra-shirt")).discount == 20
    assert (await repo.get_by_slug("kente-stole")).discount == 0

    reset = await discounts.end_campaign(campaign)

    assert reset == 2
    assert campaign.is_active is False
    assert campaign.ended_at is not None
    assert (await repo.get_by_slug("batakari-smock")).discount == 0

    with pytest.raises(ValueError):
        await discounts.end_campaign(campaign)


async def test_campaign_on_unknown_product(session, products):
    with pytest.raises(LookupError):
        await DiscountRepository(session).start_campaign("Flash", 50, product_slug="missing")


async def test_campaign_on_whole_catalog(session, products):
    discounts = DiscountRepository(session)

    campaign = await discounts.start_campaign("Black Friday", 30)

    assert campaign.products_affected == 3
    assert [c.id for c in await discounts.list_campaigns(active_only=True)] == [campaign.id]


async def test_given_slug_is_normalized(session):
    product = await ProductRepository(session).create_product(
        {"name": "Kente Stole", "slug": "Kente Stole!!", "category": "Accessories"}
    )
    assert product.slug == "kente-stole"


async def test_slug_taken_after_check_is_a_conflict(session, monkeypatch):
    repo = ProductRepository(session)
    await repo.create_product({"name": "Kente Stole", "category": "Accessories"})
    await session.commit()

    # Another request inserted the slug between the existence check and the flush
    monkeypatch.setattr(repo, "slug_exists", AsyncMock(return_value=False))

    with pytest.raises(SlugConflictError):
        await repo.create_product({"name": "Kente Stole", "category": "Accessories"})
    await session.rollback()

    with pytest.raises(SlugConflictError):
        await repo.create_products([{"name": "Kente Stole", "category": "Accessories"}])
    await session.rollback()
