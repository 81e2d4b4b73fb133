import pytest
from fastapi.testclient import TestClient

from storefront_server.http_server import create_app

from conftest import HELLO_STREAM


@pytest.fixture
def client(settings, upstream):
    app = create_app(settings, transport=upstream.transport)
    with TestClient(app) as test_client:
        yield test_client


def test_preflight_allows_any_origin(client):
    response = client.options("/api/chat")

    assert response.status_code == 204
    assert response.content == b""
    assert response.headers["access-control-allow-origin"] == "*"
    assert response.headers["access-control-allow-methods"] == "GET, POST, OPTIONS"
    assert response.headers["access-control-allow-headers"] == "Content-Type"


@pytest.mark.parametrize("path", ["/", "/index.html"])
def test_serves_storefront_page(client, path):
    response = client.get(path)

    assert response.status_code == 200
    assert response.headers["content-type"] == "text/html;charset=UTF-8"
    assert response.headers["access-control-allow-origin"] == "*"
    assert "/api/chat" in response.text


def test_products_endpoint(client, upstream):
    response = client.get("/api/products")

    assert response.status_code == 200
    assert response.headers["access-control-allow-origin"] == "*"
    body = response.json()
    assert [p["id"] for p in body["product"]] == ["kaos-polos", "topi-rajut"]
    assert body["product"][0]["stok"] == "Tersedia"
    assert body["product"][0]["styles"][0]["color"] == "#ffffff"


def test_products_endpoint_uses_fallback_when_feed_is_down(client, upstream):
    upstream.catalog_status = 502

    response = client.get("/api/products")

    assert response.status_code == 200
    assert response.json()["product"][0]["title"] == "Masker 3D Bordir"


def test_products_endpoint_reports_unexpected_errors(client):
    async def broken():
        raise RuntimeError("disk on fire")

    client.app.state.catalog_provider.get_catalog = broken

    response = client.get("/api/products")

    assert response.status_code == 500
    assert response.json() == {"error": "Failed to load products", "details": "disk on fire"}


def test_chat_relays_stream_byte_for_byte(client, upstream):
    response = client.post("/api/chat", json={"message": "hi"})

    assert response.status_code == 200
    assert response.headers["content-type"].startswith("text/event-stream")
    assert response.headers["access-control-allow-origin"] == "*"
    assert response.content == b"".join(HELLO_STREAM)
    lines = [line for line in response.content.split(b"\n") if line]
    assert lines == [b'data: {"response":"Hello"}', b"data: [DONE]"]


def test_chat_forwards_conversation_history(client, upstream):
    history = [{"role": "user", "content": "halo"}, {"role": "assistant", "content": "Halo!"}]

    client.post("/api/chat", json={"message": "ada topi?", "conversationHistory": history})

    messages = upstream.last_inference_payload()["messages"]
    assert messages[1:] == history + [{"role": "user", "content": "ada topi?"}]


@pytest.mark.parametrize("body", [{"message": ""}, {}, {"message": "   "}])
def test_chat_requires_message(client, upstream, body):
    response = client.post("/api/chat", json=body)

    assert response.status_code == 400
    assert response.json() == {"error": "Message is required"}
    assert upstream.inference_calls == []


def test_chat_rejects_invalid_json(client, upstream):
    response = client.post("/api/chat", content=b"{oops", headers={"Content-Type": "application/json"})

    assert response.status_code == 400
    assert response.json()["error"] == "Invalid JSON body"
    assert upstream.requests == []


def test_chat_rejects_bad_history(client, upstream):
    response = client.post(
        "/api/chat", json={"message": "hi", "conversationHistory": [{"role": "robot", "content": "x"}]}
    )

    assert response.status_code == 400
    assert response.json()["error"] == "Invalid request"
    assert upstream.inference_calls == []


def test_chat_backend_failure_is_a_json_error(client, upstream):
    upstream.inference_status = 500

    response = client.post("/api/chat", json={"message": "hi"})

    assert response.status_code == 500
    body = response.json()
    assert body["error"] == "Internal server error"
    assert "500" in body["details"]
    assert response.headers["access-control-allow-origin"] == "*"


@pytest.mark.parametrize(
    "method,path",
    [("GET", "/nope"), ("GET", "/api/chat"), ("POST", "/api/products"), ("POST", "/")],
)
def test_unknown_routes_are_not_found(client, method, path):
    response = client.request(method, path)

    assert response.status_code == 404
    assert response.text == "Not found"
    assert response.headers["access-control-allow-origin"] == "*"
