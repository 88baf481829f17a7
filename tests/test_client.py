import httpx

from upstream.client import NETWORK_ERROR_STATUS, FetchResult, UpstreamClient
from tests.conftest import UPSTREAM_URL, draw_page, request_json


class TestRequest:

    def test_posts_payload_with_browser_headers(self, make_client):
        seen = {}

        def handler(request):
            seen["request"] = request
            return httpx.Response(200, json=draw_page([]))

        client = make_client(handler, page_size=20, type_id=30, language=2, signature="ABC")
        client.fetch()

        req = seen["request"]
        assert req.method == "POST"
        assert str(req.url) == UPSTREAM_URL

        body = request_json(req)
        assert set(body) == {"pageSize", "pageNo", "typeId", "language", "random", "signature", "timestamp"}
        assert body["pageSize"] == 20
        assert body["pageNo"] == 1
        assert body["typeId"] == 30
        assert body["language"] == 2
        assert body["signature"] == "ABC"
        assert isinstance(body["timestamp"], int)
        assert len(body["random"]) == 32

        assert req.headers["Origin"] == "https://draw.example.test"
        assert req.headers["Referer"] == "https://draw.example.test/"
        assert "Mozilla" in req.headers["User-Agent"]
        assert req.headers["Content-Type"].startswith("application/json")
        assert "application/json" in req.headers["Accept"]

    def test_nonce_changes_per_call(self, make_client):
        nonces = []

        def handler(request):
            nonces.append(request_json(request)["random"])
            return httpx.Response(200, json={})

        client = make_client(handler)
        client.fetch()
        client.fetch()
        assert nonces[0] != nonces[1]

    def test_extra_headers_override_defaults(self, make_client):
        seen = {}

        def handler(request):
            seen["headers"] = request.headers
            return httpx.Response(200, json={})

        client = make_client(handler, extra_headers={"Authorization": "Bearer t", "Origin": "https://x.test"})
        client.fetch()
        assert seen["headers"]["Authorization"] == "Bearer t"
        assert seen["headers"]["Origin"] == "https://x.test"


class TestResponses:

    def test_json_body(self, make_client):
        client = make_client(draw_page([{"issueNumber": "1", "number": "2"}]))
        result = client.fetch()
        assert result.ok
        assert result.status == 200
        assert result.error is None
        assert result.body["data"]["list"][0]["issueNumber"] == "1"
        assert client.last_result is result

    def test_json_without_json_content_type(self, make_client):
        client = make_client(lambda request: httpx.Response(200, text='{"list": []}', headers={"content-type": "text/html"}))
        assert client.fetch().body == {"list": []}

    def test_non_json_falls_back_to_text(self, make_client):
        client = make_client(lambda request: httpx.Response(200, text="<html>captcha</html>"))
        result = client.fetch()
        assert result.status == 200
        assert result.body == "<html>captcha</html>"

    def test_broken_json_falls_back_to_text(self, make_client):
        client = make_client(
            lambda request: httpx.Response(200, text="{not json", headers={"content-type": "application/json"})
        )
        assert client.fetch().body == "{not json"

    def test_deeply_nested_json_falls_back_to_text(self, make_client):
        text = "[" * 100000 + "]" * 100000
        client = make_client(lambda request: httpx.Response(200, text=text, headers={"content-type": "application/json"}))
        result = client.fetch()
        assert result.status == 200
        assert result.body == text
        assert client.last_result is result

    def test_error_status_is_returned_not_raised(self, make_client):
        client = make_client(lambda request: httpx.Response(403, json={"msg": "forbidden"}))
        result = client.fetch()
        assert not result.ok
        assert result.status == 403
        assert result.error == "HTTP 403"
        assert result.body == {"msg": "forbidden"}

    def test_timeout_maps_to_sentinel(self, make_client):
        def handler(request):
            raise httpx.ReadTimeout("timed out", request=request)

        client = make_client(handler)
        result = client.fetch()
        assert result.status == NETWORK_ERROR_STATUS
        assert result.body is None
        assert "ReadTimeout" in result.error
        assert client.last_result is result

    def test_connect_error_maps_to_sentinel(self, make_client):
        def handler(request):
            raise httpx.ConnectError("refused", request=request)

        assert make_client(handler).fetch().status == NETWORK_ERROR_STATUS

    def test_context_manager_closes(self):
        with UpstreamClient(UPSTREAM_URL, transport=httpx.MockTransport(lambda r: httpx.Response(200))) as c:
            c.fetch()
        assert c.http.is_closed


class TestPreview:

    def _result(self, body):
        return FetchResult(status=200, body=body, error=None, elapsed_ms=1, fetched_at_ms=0)

    def test_truncates(self):
        assert self._result("x" * 50).preview(10) == "x" * 10 + "..."

    def test_json_is_rendered(self):
        assert self._result({"a": 1}).preview(100) == '{"a": 1}'

    def test_no_body(self):
        assert self._result(None).preview(100) == ""
