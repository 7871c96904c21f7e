import asyncio
import json
import logging

import pytest
from declarest.core.descriptors import (
    BodyParam,
    MethodDescriptor,
    MethodVerb,
    PathParam,
    QueryParam,
    ReturnKind,
)
from declarest.core.errors import (
    ClientError,
    MissingParameterError,
    ShapeError,
    TransportError,
    UnsuccessfulStatusError,
)
from declarest.core.factory import create_client
from declarest.core.messages import Request, Response
from declarest.transports.mock import MockTransport

BASE = "https://api.example.com"

ECHO = MethodDescriptor(
    name="echo",
    verb=MethodVerb.POST,
    path_template="/echo/{channel}",
    bindings=(PathParam("channel"), BodyParam()),
)

GET_ITEM = MethodDescriptor(
    name="get_item",
    verb=MethodVerb.GET,
    path_template="/items/{id}",
    bindings=(PathParam("id"),),
    arg_names=("id",),
)


def _echo_handler(request: Request) -> Response:
    return Response(200, {"Content-Type": "application/json"}, request.body or b"")


@pytest.mark.asyncio
async def test_invoke_round_trip():
    transport = MockTransport(_echo_handler)
    client = create_client(BASE, transport, [ECHO])

    result = await client.echo("general", {"id": 7})

    assert result == {"id": 7}
    sent = transport.requests[0]
    assert sent.method is MethodVerb.POST
    assert sent.url == "https://api.example.com/echo/general"


@pytest.mark.asyncio
async def test_build_error_never_touches_transport():
    transport = MockTransport(_echo_handler)
    client = create_client(BASE, transport, [ECHO])

    with pytest.raises(MissingParameterError) as exc:
        await client.echo("general")

    assert exc.value.method_name == "echo"
    assert transport.requests == []


@pytest.mark.asyncio
async def test_foreign_transport_exception_is_wrapped():
    def handler(request):
        raise ConnectionResetError("peer went away")

    client = create_client(BASE, MockTransport(handler), [GET_ITEM])

    with pytest.raises(TransportError) as exc:
        await client.get_item(1)

    assert isinstance(exc.value.__cause__, ConnectionResetError)
    assert exc.value.method_name == "get_item"
    assert "https://api.example.com/items/1" in str(exc.value)


@pytest.mark.asyncio
async def test_transport_error_passes_through_unchanged():
    original = TransportError("timed out")

    async def handler(request):
        raise original

    client = create_client(BASE, MockTransport(handler), [GET_ITEM])

    with pytest.raises(TransportError) as exc:
        await client.get_item(1)

    assert exc.value is original
    assert exc.value.method_name == "get_item"


@pytest.mark.asyncio
async def test_transport_returning_wrong_type_is_transport_error():
    client = create_client(BASE, MockTransport(lambda r: {"status": 200}), [GET_ITEM])

    with pytest.raises(TransportError):
        await client.get_item(1)


@pytest.mark.asyncio
async def test_cancellation_is_not_wrapped():
    async def handler(request):
        raise asyncio.CancelledError()

    client = create_client(BASE, MockTransport(handler), [GET_ITEM])

    with pytest.raises(asyncio.CancelledError):
        await client.get_item(1)


@pytest.mark.asyncio
async def test_cancelling_pending_call_stops_awaiting_transport():
    started = asyncio.Event()
    release = asyncio.Event()

    async def handler(request):
        started.set()
        await release.wait()
        return Response(200, {}, b"{}")

    client = create_client(BASE, MockTransport(handler), [GET_ITEM])
    task = asyncio.create_task(client.get_item(1))
    await started.wait()
    task.cancel()

    with pytest.raises(asyncio.CancelledError):
        await task


@pytest.mark.asyncio
async def test_status_and_decode_errors_share_base_class():
    responses = iter(
        [Response(404, {}, b'{"message": "Not found"}'), Response(200, {}, b"nope")]
    )
    client = create_client(BASE, MockTransport(lambda r: next(responses)), [GET_ITEM])

    with pytest.raises(ClientError) as first:
        await client.get_item(1)
    with pytest.raises(ClientError) as second:
        await client.get_item(2)

    assert isinstance(first.value, UnsuccessfulStatusError)
    assert first.value.status_code == 404
    assert first.value.body == b'{"message": "Not found"}'
    assert first.value.url == "https://api.example.com/items/1"
    assert isinstance(second.value, ShapeError)


@pytest.mark.asyncio
async def test_raw_response_passes_non_2xx_through():
    raw = MethodDescriptor(
        name="get_raw",
        verb=MethodVerb.GET,
        path_template="/items/{id}",
        bindings=(PathParam("id"),),
        return_kind=ReturnKind.RAW_RESPONSE,
    )
    reply = Response(404, {"X-Trace": "abc"}, b"missing")
    client = create_client(BASE, MockTransport(lambda r: reply), [raw])

    result = await client.get_raw(1)

    assert result is reply


@pytest.mark.asyncio
async def test_concurrent_calls_do_not_interfere():
    async def handler(request: Request) -> Response:
        payload = json.loads(request.body)
        # later ids finish first
        for _ in range(100 - payload["request_id"]):
            await asyncio.sleep(0)
        return Response(200, {}, request.body)

    transport = MockTransport(handler)
    client = create_client(BASE, transport, [ECHO])

    results = await asyncio.gather(
        *(client.echo(f"c{i}", {"request_id": i}) for i in range(100))
    )

    assert [r["request_id"] for r in results] == list(range(100))
    assert len(transport.requests) == 100
    urls = {r.url for r in transport.requests}
    assert len(urls) == 100


@pytest.mark.asyncio
async def test_keyword_arguments_and_query():
    search = MethodDescriptor(
        name="search",
        verb=MethodVerb.GET,
        path_template="/search",
        bindings=(QueryParam("q"), QueryParam("page", optional=True)),
        arg_names=("q", "page"),
    )
    transport = MockTransport(lambda r: Response(200, {}, b"[]"))
    client = create_client(BASE, transport, [search])

    assert await client.search(q="bug") == []
    assert await client.search("bug", page=2) == []

    assert [r.url for r in transport.requests] == [
        "https://api.example.com/search?q=bug",
        "https://api.example.com/search?q=bug&page=2",
    ]


@pytest.mark.asyncio
async def test_call_logs_success(caplog):
    caplog.set_level(logging.INFO, logger="declarest.dispatcher")
    client = create_client(BASE, MockTransport(_echo_handler), [GET_ITEM])

    await client.get_item(5)

    record = next(r for r in caplog.records if r.getMessage() == "client_call")
    assert record.method == "get_item"
    assert record.verb == "GET"
    assert record.endpoint == "/items/{id}"
    assert record.status == 200
    assert record.duration_ms >= 0
    assert record.request_id
    assert not hasattr(record, "error_type")


@pytest.mark.asyncio
async def test_call_logs_failure(caplog):
    caplog.set_level(logging.INFO, logger="declarest.dispatcher")
    client = create_client(
        BASE, MockTransport(lambda r: Response(503, {}, b"")), [GET_ITEM]
    )

    with pytest.raises(UnsuccessfulStatusError):
        await client.get_item(5)

    record = next(r for r in caplog.records if r.getMessage() == "client_call")
    assert record.status == 503
    assert record.error_type == "UnsuccessfulStatusError"


@pytest.mark.asyncio
async def test_build_failure_logged_without_status(caplog):
    caplog.set_level(logging.INFO, logger="declarest.dispatcher")
    client = create_client(BASE, MockTransport(_echo_handler), [GET_ITEM])

    with pytest.raises(MissingParameterError):
        await client.get_item()

    record = next(r for r in caplog.records if r.getMessage() == "client_call")
    assert record.status == "error"
    assert record.error_type == "MissingParameterError"
