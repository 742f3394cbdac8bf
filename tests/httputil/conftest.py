import pytest
import httpx
from httpx import ASGITransport
from typing import AsyncGenerator
from pytest_asyncio import fixture as async_fixture
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse, PlainTextResponse, Response as RawResponse
from fastapi.testclient import TestClient

from httputil.client import Client, AsyncClient


# --- Application de test servant de serveur HTTP ---

app = FastAPI(title="httputil test server")


@app.get("/items/{item_id}")
async def get_item(item_id: int):
    return {"id": item_id}


@app.post("/items")
async def create_item():
    return JSONResponse(content="server error", status_code=500)


@app.post("/created")
async def created():
    return JSONResponse(content={"id": 2}, status_code=201)


@app.post("/echo")
async def echo(request: Request):
    """Renvoie le corps reçu tel quel, avec le même content-type."""
    body = await request.body()
    return RawResponse(content=body, media_type=request.headers.get("content-type", "application/octet-stream"))


@app.get("/headers")
async def headers(request: Request):
    return dict(request.headers)


@app.get("/envelope/{code}")
async def envelope(code: str):
    if code == "empty":
        return {"message": "no code here"}
    if code == "ok":
        return {"code": "ok", "message": "", "data": {"id": 7}}
    return {"code": code, "message": "bad"}


@app.get("/text")
async def text():
    return PlainTextResponse("definitely not json")


BASE_URL = "http://testserver"


# --- Fixtures client synchrone / asynchrone ---

@pytest.fixture
def client():
    """Façade synchrone branchée sur l'application FastAPI (TestClient est un httpx.Client)."""
    with Client(transport=TestClient(app), base_url=BASE_URL) as c:
        yield c


@async_fixture
async def async_client() -> AsyncGenerator[AsyncClient, None]:
    """Façade asynchrone branchée sur l'application FastAPI."""
    transport = httpx.AsyncClient(transport=ASGITransport(app=app), base_url="http://test")
    async with AsyncClient(transport=transport, base_url="http://test") as c:
        yield c


@pytest.fixture
def make_mock_client():
    """Fabrique de façades synchrones sur un httpx.MockTransport (handler(request) -> httpx.Response)."""
    def _make(handler, **kwargs) -> Client:
        return Client(transport=httpx.Client(transport=httpx.MockTransport(handler)), **kwargs)
    return _make
