"""
Tests for server.py — routes exercised through aiohttp's test client.

Covers:
  - request validation → 400
  - successful analysis / recommendation / report / chat payloads
  - error mapping: model output 502, pool exhausted 503, catalog 503,
    non-retriable model error 500
  - CORS headers and preflight
  - health check and SPA fallback
"""
from __future__ import annotations

import base64
import json
from contextlib import asynccontextmanager

import pytest
from aiohttp.test_utils import TestClient, TestServer

from catalog.cache import CatalogCache
from catalog.partition import KeywordClassifier
from conftest import FakeProvider, FakeSource
from providers.manager import CredentialPool, FailoverInvoker
from server import build_web_app

IMG = base64.b64encode(b"\xff\xd8\xff\xe0fake-jpeg").decode()
HAIR = KeywordClassifier(["hair", "scalp", "shampoo", "minoxidil"])


@asynccontextmanager
async def client_for(*providers, source=None, static_dir=None):
    invoker = FailoverInvoker(CredentialPool(providers))
    cache = CatalogCache(source or FakeSource(()))
    app = build_web_app(invoker, cache, HAIR, static_dir=static_dir)
    async with TestClient(TestServer(app)) as client:
        yield client


@pytest.mark.asyncio
class TestValidation:
    async def test_missing_images_400(self):
        async with client_for(FakeProvider("k1", "[]")) as client:
            resp = await client.post("/api/analyze-skin", json={})
            assert resp.status == 400
            assert "images" in (await resp.json())["error"]

    async def test_empty_images_400(self):
        async with client_for(FakeProvider("k1", "[]")) as client:
            resp = await client.post("/api/analyze-hair", json={"images": []})
            assert resp.status == 400

    async def test_invalid_json_body_400(self):
        async with client_for(FakeProvider("k1", "[]")) as client:
            resp = await client.post("/api/chat", data="{not json", headers={"Content-Type": "application/json"})
            assert resp.status == 400

    async def test_undecodable_image_400(self):
        provider = FakeProvider("k1", "[]")
        async with client_for(provider) as client:
            resp = await client.post("/api/analyze-skin", json={"images": ["%%%"]})
            assert resp.status == 400
            assert provider.calls == []

    async def test_bad_report_type_400(self):
        async with client_for(FakeProvider("k1", "x")) as client:
            resp = await client.post("/api/doctor-report", json={"analysis": [], "type": "teeth"})
            assert resp.status == 400


@pytest.mark.asyncio
class TestRoutes:
    async def test_analyze_skin(self):
        async with client_for(FakeProvider("k1", "[]")) as client:
            resp = await client.post("/api/analyze-skin", json={"images": [IMG]})
            assert resp.status == 200
            assert await resp.json() == []

    async def test_recommend_skin(self, catalog):
        answer = json.dumps({
            "am": [{"productId": "V-ACNE", "name": "Anti-Acne Gel", "stepType": "Treatment"}],
            "pm": [{"productId": "ghost", "name": "Ghost", "stepType": "Serum"}],
        })
        async with client_for(FakeProvider("k1", answer), source=FakeSource(catalog)) as client:
            resp = await client.post("/api/recommend-skin", json={"analysis": [], "goals": ["Clear skin"]})
            body = await resp.json()

        assert resp.status == 200
        assert len(body) == 1
        assert body[0]["category"] == "Morning Routine"
        assert body[0]["products"][0]["variantId"] == "V-ACNE"

    async def test_doctor_report(self):
        async with client_for(FakeProvider("k1", "# Report")) as client:
            resp = await client.post("/api/doctor-report", json={"analysis": [], "type": "hair"})
            assert await resp.json() == {"report": "# Report"}

    async def test_chat(self):
        async with client_for(FakeProvider("k1", "Hello!")) as client:
            resp = await client.post("/api/chat", json={"query": "hi", "context": {}})
            assert await resp.json() == {"response": "Hello!"}


@pytest.mark.asyncio
class TestErrorMapping:
    async def test_model_output_error_502(self):
        async with client_for(FakeProvider("k1", "not json")) as client:
            resp = await client.post("/api/analyze-skin", json={"images": [IMG]})
            body = await resp.json()
        assert resp.status == 502
        assert body["error"].startswith("Failed to analyze skin")
        assert "details" in body

    async def test_pool_exhausted_503(self):
        quota = RuntimeError("quota exceeded")
        async with client_for(FakeProvider("k1", quota), FakeProvider("k2", quota)) as client:
            resp = await client.post("/api/chat", json={"query": "hi"})
            body = await resp.json()
        assert resp.status == 503
        assert "All 2 API keys failed" in body["details"]

    async def test_non_retriable_500(self):
        async with client_for(FakeProvider("k1", RuntimeError("unsupported content"))) as client:
            resp = await client.post("/api/chat", json={"query": "hi"})
            assert resp.status == 500

    async def test_catalog_unavailable_503(self, fetch_error):
        provider = FakeProvider("k1", '{"am": [], "pm": []}')
        async with client_for(provider, source=FakeSource(error=fetch_error)) as client:
            resp = await client.post("/api/recommend-hair", json={"analysis": []})
            body = await resp.json()
        assert resp.status == 503
        assert "catalog" in body["error"]
        assert provider.calls == []


@pytest.mark.asyncio
class TestMisc:
    async def test_cors_headers(self):
        async with client_for(FakeProvider("k1", "ok")) as client:
            resp = await client.post("/api/chat", json={"query": "hi"})
            assert resp.headers["Access-Control-Allow-Origin"] == "*"

    async def test_preflight(self):
        async with client_for(FakeProvider("k1", "ok")) as client:
            resp = await client.options("/api/chat")
            assert resp.status == 204
            assert "POST" in resp.headers["Access-Control-Allow-Methods"]

    async def test_health(self):
        async with client_for(FakeProvider("k1"), FakeProvider("k2")) as client:
            resp = await client.get("/health")
            text = await resp.text()
        assert resp.status == 200
        assert "2 key(s)" in text
        assert "not loaded" in text

    async def test_spa_fallback(self, tmp_path):
        (tmp_path / "index.html").write_text("<html>app</html>")
        (tmp_path / "app.js").write_text("console.log(1)")
        async with client_for(FakeProvider("k1"), static_dir=str(tmp_path)) as client:
            assert "app" in await (await client.get("/routine/123")).text()
            assert "console.log" in await (await client.get("/app.js")).text()

    async def test_no_frontend_build_404(self, tmp_path):
        async with client_for(FakeProvider("k1"), static_dir=str(tmp_path / "missing")) as client:
            resp = await client.get("/")
            assert resp.status == 404
