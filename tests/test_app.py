import unittest

import httpx
from fastapi.testclient import TestClient

import context  # noqa: F401

from fixhn.app import create_app
from fixhn.config import Settings

API = "https://hn.test/v0"
BOT_UA = "Twitterbot/1.0"
BROWSER_UA = "Mozilla/5.0 (Macintosh; Intel Mac OS X 10.15; rv:144.0) Gecko/20100101 Firefox/144.0"

STORY = {
    "id": 12345,
    "type": "story",
    "title": "A <b>bold</b> claim",
    "url": "https://example.com/x",
    "score": 142,
    "by": "alice",
    "time": 1700000000,
    "descendants": 87,
}


class UpstreamStub:
    def __init__(self, items=None, page_status=200):
        self.items = items or {}
        self.page_status = page_status
        self.requests = []

    def __call__(self, request):
        self.requests.append(request)
        if request.url.host == "hn.test":
            item_id = int(request.url.path.rsplit("/", 1)[-1].split(".")[0])
            if item_id not in self.items:
                return httpx.Response(200, content=b"null")
            return httpx.Response(200, json=self.items[item_id])
        return httpx.Response(
            self.page_status,
            html='<meta property="og:image" content="https://img/1.png">',
        )


class TestApp(unittest.TestCase):
    def make_client(self, upstream):
        self.upstream = upstream
        http = httpx.AsyncClient(transport=httpx.MockTransport(upstream))
        app = create_app(Settings(api_base=API), client=http)
        return TestClient(app, follow_redirects=False)

    def test_usage_banner(self):
        client = self.make_client(UpstreamStub())
        response = client.get("/")
        self.assertEqual(response.status_code, 200)
        assert response.text.startswith("fixhn - OpenGraph tags for Hacker News links")
        assert "Usage: /item?id=12345" in response.text
        assert response.headers["content-type"].startswith("text/plain")

    def test_unknown_path(self):
        client = self.make_client(UpstreamStub())
        self.assertEqual(client.get("/other").status_code, 404)

    def test_bad_ids(self):
        client = self.make_client(UpstreamStub())
        self.assertEqual(client.get("/item?id=abc").status_code, 400)
        self.assertEqual(client.get("/item?id=").status_code, 400)
        self.assertEqual(client.get("/item").status_code, 400)
        self.assertEqual(self.upstream.requests, [])

    def test_odd_ids_never_fail_the_server(self):
        client = self.make_client(UpstreamStub(items={12345: STORY}))
        for query in [
            "id=" + "1" * 5000,
            "id=" + "9" * 25,
            "id=%00",
            "id=%D9%A1%D9%A2",
            "id=1e5",
            "id=-0",
            "id=%2012",
            "id=12345%0A",
            "id[]=12345",
        ]:
            for agent in [BOT_UA, BROWSER_UA]:
                response = client.get(f"/item?{query}", headers={"User-Agent": agent})
                self.assertEqual(response.status_code, 400, query)

    def test_first_repeated_id_wins(self):
        client = self.make_client(UpstreamStub())
        self.assertEqual(client.get("/item?id=abc&id=1").status_code, 400)

        response = client.get("/item?id=7&id=abc", headers={"User-Agent": BROWSER_UA})
        self.assertEqual(response.status_code, 302)
        self.assertEqual(response.headers["location"], "https://news.ycombinator.com/item?id=7")

    def test_other_methods(self):
        client = self.make_client(UpstreamStub())
        self.assertEqual(client.post("/other").status_code, 404)
        self.assertEqual(client.delete("/other/deeper").status_code, 404)
        self.assertEqual(client.post("/").status_code, 200)

    def test_hostile_page_still_renders(self):
        class HostilePage(UpstreamStub):
            def __call__(self, request):
                if request.url.host == "hn.test":
                    return super().__call__(request)
                self.requests.append(request)
                return httpx.Response(200, html="<meta a" * 20000)

        client = self.make_client(HostilePage(items={12345: STORY}))
        response = client.get("/item?id=12345", headers={"User-Agent": BOT_UA})

        self.assertEqual(response.status_code, 200)
        assert 'content="summary"' in response.text

    def test_browser_redirect(self):
        client = self.make_client(UpstreamStub(items={12345: STORY}))
        response = client.get("/item?id=12345", headers={"User-Agent": BROWSER_UA})
        self.assertEqual(response.status_code, 302)
        self.assertEqual(response.headers["location"], "https://news.ycombinator.com/item?id=12345")
        self.assertEqual(self.upstream.requests, [])

    def test_bot_redirect_for_missing_item(self):
        client = self.make_client(UpstreamStub())
        response = client.get("/item?id=12345", headers={"User-Agent": BOT_UA})
        self.assertEqual(response.status_code, 302)
        self.assertEqual(response.headers["location"], "https://news.ycombinator.com/item?id=12345")

    def test_bot_document(self):
        client = self.make_client(UpstreamStub(items={12345: STORY}))
        response = client.get("/item?id=12345", headers={"User-Agent": BOT_UA})

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.headers["content-type"], "text/html; charset=utf-8")
        self.assertEqual(response.headers["cache-control"], "public, max-age=300")
        assert "A &lt;b&gt;bold&lt;/b&gt; claim" in response.text
        assert "<b>" not in response.text
        assert "142 points | by alice |" in response.text
        assert "| 87 comments | (example.com)" in response.text
        assert 'content="summary_large_image"' in response.text

        page_request = self.upstream.requests[-1]
        self.assertEqual(str(page_request.url), "https://example.com/x")
        self.assertEqual(page_request.headers["user-agent"], "fixhn-ogimage-fetcher/1.0")

    def test_bot_document_when_page_fails(self):
        client = self.make_client(UpstreamStub(items={12345: STORY}, page_status=500))
        response = client.get("/item?id=12345", headers={"User-Agent": BOT_UA})

        self.assertEqual(response.status_code, 200)
        assert 'content="summary"' in response.text
        assert "og:image" not in response.text


if __name__ == "__main__":
    unittest.main()
