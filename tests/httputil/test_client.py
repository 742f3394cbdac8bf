# Fichier : tests/httputil/test_client.py
import io
import pytest
import httpx
from pydantic import BaseModel

from httputil.client import Client
from httputil.core.exceptions import (
    APIError, BodyEncodeError, BodyReadError, DecodeError, RequestBuildError, UnexpectedStatusError,
)
from httputil.envelope import CodeMessageData


class Item(BaseModel):
    id: int


class NewItem(BaseModel):
    name: str


class FailingStream(httpx.SyncByteStream):
    """Flux de réponse qui échoue à la lecture, après réception du statut."""

    def __init__(self):
        self.closed = False

    def __iter__(self):
        raise httpx.ReadError("connection reset while reading body")
        yield b""  # pragma: no cover

    def close(self):
        self.closed = True


# ---------------- Scénarios sur l'application FastAPI ----------------

class TestAgainstTestServer:

    def test_get_item_decodes_json(self, client):
        resp = client.do("GET", "/items/1")
        resp.ok()
        item = resp.json(Item)
        assert item.id == 1

    def test_post_server_error_fails_ok(self, client):
        resp = client.do("POST", "/items", body={"name": "x"})
        assert resp.status_code == 500
        with pytest.raises(UnexpectedStatusError) as exc:
            resp.ok()
        assert "500" in str(exc.value)
        assert "server error" in str(exc.value)
        assert "POST http://testserver/items" in str(exc.value)

    def test_body_is_buffered_even_on_error_status(self, client):
        resp = client.do("POST", "/items")
        assert resp.body == b'"server error"'

    def test_struct_round_trip(self, client):
        sent = NewItem(name="x")
        resp = client.do("POST", "/echo", headers={"Content-Type": "application/json"}, body=sent)
        resp.ok()
        assert resp.json(NewItem) == sent

    def test_stream_body_round_trip(self, client):
        resp = client.do("POST", "/echo", body=io.BytesIO(b"stream payload"))
        assert resp.body == b"stream payload"

    def test_check_accepts_created(self, client):
        resp = client.do("POST", "/created")
        resp.check(200, 201)
        with pytest.raises(UnexpectedStatusError):
            resp.ok()

    def test_headers_override_transport_defaults(self, client):
        seen = client.do("GET", "/headers", headers={"User-Agent": "httputil-test", "X-Trace": "42"}).json(dict)
        assert seen["user-agent"] == "httputil-test"
        assert seen["x-trace"] == "42"

    def test_do_json(self, client):
        assert client.do_json("GET", "/items/9", None, None, Item) == Item(id=9)

    def test_do_json_checks_status_before_decoding(self, client):
        with pytest.raises(UnexpectedStatusError):
            client.do_json("POST", "/items", None, None, Item)

    def test_do_json_with_envelope(self, client):
        result = client.do_json("GET", "/envelope/ok", None, None, CodeMessageData[Item])
        assert result.data == Item(id=7)

    def test_do_json_application_error(self, client):
        with pytest.raises(APIError, match="E1: bad"):
            client.do_json("GET", "/envelope/E1", None, None, CodeMessageData)

    def test_do_json_decode_error(self, client):
        with pytest.raises(DecodeError, match="definitely not json"):
            client.do_json("GET", "/text", None, None, Item)

    def test_json_none_target_on_text(self, client):
        assert client.do_json("GET", "/text", None, None, None) is None


# ---------------- Construction des requêtes ----------------

class TestRequestBuilding:

    def test_base_url_is_concatenated_verbatim(self, make_mock_client):
        seen = []

        def handler(request):
            seen.append(str(request.url))
            return httpx.Response(200)

        make_mock_client(handler, base_url="https://api.test").do("GET", "/v1/x")
        assert seen == ["https://api.test/v1/x"]

    def test_no_separator_is_inserted(self, make_mock_client):
        seen = []

        def handler(request):
            seen.append(str(request.url))
            return httpx.Response(200)

        make_mock_client(handler, base_url="https://api.test/v1").do("GET", "x")
        assert seen == ["https://api.test/v1x"]

    def test_without_base_url_url_is_used_as_is(self, make_mock_client):
        seen = []

        def handler(request):
            seen.append(str(request.url))
            return httpx.Response(200)

        make_mock_client(handler).do("GET", "https://other.test/path?q=1")
        assert seen == ["https://other.test/path?q=1"]

    def test_empty_body_sends_nothing(self, make_mock_client):
        seen = []

        def handler(request):
            seen.append(request.content)
            return httpx.Response(200)

        client = make_mock_client(handler)
        client.do("POST", "https://api.test/a", body="")
        client.do("POST", "https://api.test/a", body=None)
        assert seen == [b"", b""]

    def test_custom_marshal_func(self, make_mock_client):
        seen = []

        def handler(request):
            seen.append(request.content)
            return httpx.Response(200)

        make_mock_client(handler, marshal_func=lambda v: b"custom:" + v["k"].encode()).do(
            "PUT", "https://api.test/a", body={"k": "v"}
        )
        assert seen == [b"custom:v"]

    def test_custom_unmarshal_func_is_inherited(self, make_mock_client):
        client = make_mock_client(lambda request: httpx.Response(200, content=b"raw"),
                                  unmarshal_func=lambda data, target: data.upper())
        assert client.do_json("GET", "https://api.test/a", None, None, str) == b"RAW"

    def test_invalid_url_is_a_build_error(self, make_mock_client):
        client = make_mock_client(lambda request: httpx.Response(200))
        with pytest.raises(RequestBuildError):
            client.do("GET", "http://api.test:notaport/x")

    def test_missing_method_is_a_build_error(self, make_mock_client):
        client = make_mock_client(lambda request: httpx.Response(200))
        with pytest.raises(RequestBuildError):
            client.do("", "https://api.test/a")

    @pytest.mark.parametrize("method", ["GE T", "GET\n", "PO(ST)", "DÉLETE"])
    def test_invalid_method_token_is_a_build_error(self, make_mock_client, method):
        calls = []
        client = make_mock_client(lambda request: calls.append(request) or httpx.Response(200))
        with pytest.raises(RequestBuildError, match="invalide"):
            client.do(method, "https://api.test/a")
        assert calls == []

    def test_extension_method_tokens_are_accepted(self, make_mock_client):
        seen = []
        client = make_mock_client(lambda request: seen.append(request.method) or httpx.Response(200))
        client.do("patch", "https://api.test/a")
        client.do("PROPFIND", "https://api.test/a")
        assert seen == ["PATCH", "PROPFIND"]

    def test_encode_failure_sends_nothing(self, make_mock_client):
        calls = []
        client = make_mock_client(lambda request: calls.append(request) or httpx.Response(200))
        with pytest.raises(BodyEncodeError):
            client.do("POST", "https://api.test/a", body=object())
        assert calls == []


# ---------------- Erreurs de transport / lecture ----------------

class TestTransportErrors:

    def test_transport_error_is_not_wrapped(self, make_mock_client):
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        with pytest.raises(httpx.ConnectError):
            make_mock_client(handler).do("GET", "https://api.test/a")

    def test_body_read_error_is_distinct(self, make_mock_client):
        stream = FailingStream()
        client = make_mock_client(lambda request: httpx.Response(200, stream=stream))

        with pytest.raises(BodyReadError) as exc:
            client.do("GET", "https://api.test/a")
        assert isinstance(exc.value.__cause__, httpx.ReadError)
        assert stream.closed

    def test_client_closes_transport(self):
        transport = httpx.Client(transport=httpx.MockTransport(lambda request: httpx.Response(200)))
        with Client(transport=transport):
            pass
        assert transport.is_closed
