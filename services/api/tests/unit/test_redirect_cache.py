"""Tests for the redirect cache paths in the link service."""

import json
from datetime import timedelta
from unittest.mock import AsyncMock

import pytest
import redis.asyncio as redis
from sqlalchemy import select

from app.core import redis as redis_cache
from app.core.exceptions import ExpiredError, NotFoundError
from app.models.link import Link, utcnow
from app.services import link as link_service


@pytest.fixture
def fake_redis(monkeypatch):
    client = AsyncMock()
    client.get.return_value = None
    monkeypatch.setattr(redis_cache, "_redis_client", client)
    return client


async def add_link(session, short_code, url="http://example.com", is_active=True):
    link = Link.create(short_code, url, 30)
    link.is_active = is_active
    session.add(link)
    await session.commit()
    return link


def cached_entry(link, expires_at=None):
    return json.dumps({
        "link_id": str(link.id),
        "original_url": link.original_url,
        "expires_at": (expires_at or link.expires_at).isoformat(),
    })


async def test_cache_disabled_without_client(session):
    assert await redis_cache.get_redis() is None
    assert await redis_cache.get_cached_link("abc12") is None


async def test_miss_populates_cache(session, fake_redis):
    link = await add_link(session, "cache")

    url = await link_service.resolve_short_code(session, "cache")

    assert url == "http://example.com"
    fake_redis.get.assert_awaited_once_with("link:cache")
    key, ttl, payload = fake_redis.setex.await_args.args
    assert key == "link:cache"
    assert ttl == redis_cache.LINK_CACHE_TTL
    assert json.loads(payload)["link_id"] == str(link.id)


async def test_hit_skips_lookup_but_counts_visit(session, fake_redis, monkeypatch):
    link = await add_link(session, "cache", url="http://cached.example.com")
    fake_redis.get.return_value = cached_entry(link)
    lookup = AsyncMock()
    monkeypatch.setattr(link_service, "get_link_by_short_code", lookup)

    url = await link_service.resolve_short_code(session, "cache")
    await session.commit()

    assert url == "http://cached.example.com"
    lookup.assert_not_awaited()
    result = await session.execute(
        select(Link.clicks).where(Link.short_code == "cache")
    )
    assert result.scalar_one() == 1


async def test_hit_for_expired_entry(session, fake_redis):
    link = await add_link(session, "cache")
    fake_redis.get.return_value = cached_entry(link, expires_at=utcnow() - timedelta(minutes=1))

    with pytest.raises(ExpiredError):
        await link_service.resolve_short_code(session, "cache")


async def test_stale_hit_for_deactivated_link_invalidates(session, fake_redis):
    link = await add_link(session, "cache", is_active=False)
    fake_redis.get.return_value = cached_entry(link)

    with pytest.raises(NotFoundError):
        await link_service.resolve_short_code(session, "cache")

    fake_redis.delete.assert_awaited_once_with("link:cache")


async def test_status_change_invalidates(session, fake_redis):
    await add_link(session, "cache")

    await link_service.set_link_status(session, "cache", False)

    fake_redis.delete.assert_awaited_once_with("link:cache")


async def test_delete_invalidates(session, fake_redis):
    await add_link(session, "cache")

    await link_service.delete_link(session, "cache")

    fake_redis.delete.assert_awaited_once_with("link:cache")


async def test_redis_errors_fall_back_to_database(session, fake_redis):
    await add_link(session, "cache")
    fake_redis.get.side_effect = redis.RedisError("connection refused")
    fake_redis.setex.side_effect = redis.RedisError("connection refused")

    assert await link_service.resolve_short_code(session, "cache") == "http://example.com"
