from datetime import datetime, timedelta, timezone

import pytest

from crmhub.config import AppConfig, AuthConfig, ServerConfig
from crmhub.metadata import (
    PLACEHOLDER_AVATAR,
    PLACEHOLDER_IMAGE,
    Content,
    ContentType,
    MaterializeRequest,
    MetadataService,
    Publisher,
    Timestamp,
    Tpl,
)


@pytest.fixture
def service():
    cfg = AppConfig(ServerConfig(port=50051), AuthConfig(pk="placeholder"))
    return MetadataService(cfg)


async def _request_source(ids):
    for i in ids:
        yield MaterializeRequest(i)


@pytest.mark.asyncio
async def test_materialize_should_work(service):
    requests = [MaterializeRequest(1), MaterializeRequest(2), MaterializeRequest(3)]
    ret = [content async for content in service.materialize(requests)]
    assert len(ret) == 3
    assert [c.id for c in ret] == [1, 2, 3]


@pytest.mark.asyncio
async def test_materialize_accepts_async_stream(service):
    ret = [content async for content in service.materialize(_request_source((1, 2, 3)))]
    assert len(ret) == 3


@pytest.mark.asyncio
async def test_materialize_stops_at_error(service):
    requests = [MaterializeRequest(1), RuntimeError("broken"), MaterializeRequest(3)]
    ret = [content async for content in service.materialize(requests)]
    assert [c.id for c in ret] == [1]


def test_content_materialize_ranges():
    now = datetime.now(timezone.utc)
    for _ in range(50):
        content = Content.materialize(7)
        assert content.id == 7
        assert 0 <= len(content.publishers) <= 8
        assert 200 <= content.views < 10000
        assert 100 <= content.likes < 5000
        assert 10 <= content.dislikes < 2000
        assert content.url == PLACEHOLDER_IMAGE
        assert content.image == PLACEHOLDER_IMAGE
        assert isinstance(content.content_type, ContentType)
        created = content.created_at.to_datetime()
        assert now - timedelta(days=366) <= created <= now + timedelta(seconds=5)
        assert content.description.endswith(".")
        assert 3 <= len(content.description.split()) <= 6


def test_publisher_fake():
    for _ in range(50):
        publisher = Publisher.fake()
        assert 1000 <= publisher.id < 200000
        assert publisher.avatar == PLACEHOLDER_AVATAR
        assert len(publisher.name.split()) == 2


def test_new_with_ids_deduplicates():
    reqs = list(MaterializeRequest.new_with_ids([1, 2, 2, 3, 1]))
    assert sorted(r.id for r in reqs) == [1, 2, 3]


def test_timestamp_from_datetime():
    ts = Timestamp.from_datetime(datetime(2024, 1, 1, tzinfo=timezone.utc))
    assert ts == Timestamp(1704067200, 0)


def test_timestamp_naive_is_utc():
    naive = datetime(2024, 1, 1, 12, 30, 5, 250)
    aware = naive.replace(tzinfo=timezone.utc)
    assert Timestamp.from_datetime(naive) == Timestamp.from_datetime(aware)


def test_timestamp_round_trip():
    value = datetime(2023, 6, 15, 8, 45, 12, 123456, tzinfo=timezone.utc)
    ts = Timestamp.from_datetime(value)
    assert ts.nanos == 123456000
    assert ts.to_datetime() == value


def test_timestamp_before_epoch_round_trip():
    value = datetime(1960, 3, 1, 0, 0, 0, 500000, tzinfo=timezone.utc)
    ts = Timestamp.from_datetime(value)
    assert ts.seconds < 0
    assert 0 <= ts.nanos < 1_000_000_000
    assert ts.to_datetime() == value


def test_timestamp_rejects_bad_nanos():
    with pytest.raises(ValueError):
        Timestamp(0, 1_000_000_000)


def test_timestamp_now_is_current():
    before = datetime.now(timezone.utc)
    ts = Timestamp.now()
    after = datetime.now(timezone.utc)
    assert before - timedelta(microseconds=1) <= ts.to_datetime() <= after


def test_bodies_mention_contents():
    first = Content.materialize(1)
    second = Content.materialize(2)
    body = Tpl([first, second]).to_body()
    assert body.startswith("Content: [")
    assert first.name in body and second.name in body
    single = first.to_body()
    assert single.startswith("Content: Content(")
    assert first.description in single