# tests/test_supabase_store.py
import httpx
import pytest
from postgrest.exceptions import APIError

from popcorn_social.store.base import Order, ProcedureUnavailableError, StoreError, eq, in_
from popcorn_social.store.supabase_store import SupabaseStore


@pytest.fixture
def query(mocker):
    """Query builder whose chained calls all return itself."""
    builder = mocker.MagicMock()
    for name in ("select", "insert", "update", "delete", "eq", "in_", "is_", "order", "range"):
        getattr(builder, name).return_value = builder
    builder.execute = mocker.AsyncMock(return_value=mocker.MagicMock(data=[{"id": "p1"}]))
    return builder


@pytest.fixture
def client(mocker, query):
    client = mocker.MagicMock()
    client.table.return_value = query
    client.rpc.return_value = query
    client.remove_channel = mocker.AsyncMock()
    return client


@pytest.fixture
def store(client):
    return SupabaseStore(client)


@pytest.mark.asyncio
async def test_select_builds_query(store, client, query):
    rows = await store.select_rows(
        "posts",
        [in_("user_id", ["a", "b"]), eq("media_entry_id", None)],
        order=Order("created_at", descending=True),
        range_=(20, 39),
        columns="id, content",
    )

    assert rows == [{"id": "p1"}]
    client.table.assert_called_once_with("posts")
    query.select.assert_called_once_with("id, content")
    query.in_.assert_called_once_with("user_id", ["a", "b"])
    query.is_.assert_called_once_with("media_entry_id", "null")
    query.order.assert_called_once_with("created_at", desc=True)
    query.range.assert_called_once_with(20, 39)


@pytest.mark.asyncio
async def test_mutations(store, query):
    assert await store.insert_row("post_likes", {"post_id": "p1", "user_id": "u"}) == {"id": "p1"}
    assert await store.update_row("post_comments", [eq("id", "c1")], {"content": "x"}) == {"id": "p1"}
    assert await store.delete_row("post_likes", [eq("post_id", "p1")]) == 1

    query.insert.assert_called_once_with({"post_id": "p1", "user_id": "u"})
    query.update.assert_called_once_with({"content": "x"})
    query.eq.assert_any_call("id", "c1")


@pytest.mark.asyncio
async def test_insert_without_returned_row_fails(store, query, mocker):
    query.execute.return_value = mocker.MagicMock(data=[])

    with pytest.raises(StoreError):
        await store.insert_row("posts", {"content": "x"})


@pytest.mark.asyncio
async def test_api_error_is_wrapped(store, query):
    query.execute.side_effect = APIError({"message": "permission denied", "code": "42501"})

    with pytest.raises(StoreError, match="permission denied"):
        await store.select_rows("posts")


@pytest.mark.asyncio
async def test_transport_error_is_wrapped(store, query):
    query.execute.side_effect = httpx.ConnectError("offline")

    with pytest.raises(StoreError):
        await store.delete_row("posts", [eq("id", "p1")])


@pytest.mark.asyncio
async def test_missing_procedure_is_unavailable(store, client, query):
    query.execute.side_effect = APIError(
        {"message": "Could not find the function", "code": "PGRST202"}
    )

    with pytest.raises(ProcedureUnavailableError):
        await store.call_procedure("get_feed", {"viewer_id": "u"})
    client.rpc.assert_called_once_with("get_feed", {"viewer_id": "u"})


@pytest.mark.asyncio
async def test_failing_procedure_is_plain_store_error(store, query):
    query.execute.side_effect = APIError({"message": "boom", "code": "XX000"})

    with pytest.raises(StoreError) as excinfo:
        await store.call_procedure("get_feed", {})
    assert not isinstance(excinfo.value, ProcedureUnavailableError)


@pytest.mark.asyncio
async def test_subscribe_uses_realtime_channel(store, client, mocker):
    channel = mocker.MagicMock()
    channel.subscribe = mocker.AsyncMock()
    client.channel.return_value = channel
    handler = mocker.MagicMock()

    subscription = await store.subscribe_to_changes("follows", "following_id", "u2", handler)

    channel.on_postgres_changes.assert_called_once_with(
        "*", schema="public", table="follows", filter="following_id=eq.u2", callback=handler
    )
    channel.subscribe.assert_awaited_once()
    await subscription.unsubscribe()
    client.remove_channel.assert_awaited_once_with(channel)
