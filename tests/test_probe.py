import asyncio
import socket
import unittest

from aiohttp import web
from aiohttp.test_utils import TestServer
from multidict import CIMultiDict

from prodguard.probe import AiohttpProbe, CannedProbe, ProbeRequest, ProbeResponse, TransportError


async def _redirect(request):
    return web.Response(status=301, headers={"Location": "https://localhost/secure"})


async def _cookies(request):
    headers = CIMultiDict()
    headers.add("Set-Cookie", "a=1; Secure")
    headers.add("Set-Cookie", "b=2; HttpOnly")
    headers.add("Strict-Transport-Security", "max-age=31536000")
    return web.Response(text="ok", headers=headers)


async def _slow(request):
    await asyncio.sleep(1)
    return web.Response(text="late")


def _unused_port():
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as sock:
        sock.bind(("127.0.0.1", 0))
        return sock.getsockname()[1]


class TestAiohttpProbe(unittest.IsolatedAsyncioTestCase):
    async def asyncSetUp(self):
        app = web.Application()
        app.router.add_get("/redirect", _redirect)
        app.router.add_get("/cookies", _cookies)
        app.router.add_get("/slow", _slow)
        self.server = TestServer(app)
        await self.server.start_server()

    async def asyncTearDown(self):
        await self.server.close()

    async def test_redirects_are_not_followed(self):
        probe = AiohttpProbe()
        response = await probe.send(ProbeRequest(str(self.server.make_url("/redirect"))))
        self.assertEqual(response.status, 301)
        self.assertEqual(response.headers["location"], "https://localhost/secure")

    async def test_repeated_headers_are_preserved(self):
        probe = AiohttpProbe()
        response = await probe.send(ProbeRequest(str(self.server.make_url("/cookies"))))
        self.assertEqual(response.status, 200)
        self.assertEqual(response.headers.getall("set-cookie"), ["a=1; Secure", "b=2; HttpOnly"])
        self.assertEqual(response.headers["STRICT-TRANSPORT-SECURITY"], "max-age=31536000")

    async def test_timeout_raises_transport_error(self):
        probe = AiohttpProbe(connect_timeout=0.2, total_timeout=0.3)
        with self.assertRaises(TransportError) as caught:
            await probe.send(ProbeRequest(str(self.server.make_url("/slow"))))
        self.assertEqual(caught.exception.reason, "request timed out")

    async def test_unreachable_port_raises_transport_error(self):
        url = f"http://127.0.0.1:{_unused_port()}/"
        with self.assertRaises(TransportError) as caught:
            await AiohttpProbe(total_timeout=2).send(ProbeRequest(url))
        self.assertEqual(caught.exception.url, url)


class TestCannedProbe(unittest.IsolatedAsyncioTestCase):
    async def test_records_requests_and_answers(self):
        probe = CannedProbe(lambda request: ProbeResponse.of(204 if request.url.endswith("/a") else 404))
        first = await probe.send(ProbeRequest("http://localhost/a"))
        second = await probe.send(ProbeRequest("http://localhost/b"))
        self.assertEqual((first.status, second.status), (204, 404))
        self.assertEqual([item.url for item in probe.requests], ["http://localhost/a", "http://localhost/b"])

    async def test_raises_configured_exception(self):
        probe = CannedProbe(TransportError("http://localhost/", "refused"))
        with self.assertRaises(TransportError):
            await probe.send(ProbeRequest("http://localhost/"))
        self.assertEqual(len(probe.requests), 1)

    def test_response_headers_are_case_insensitive(self):
        response = ProbeResponse.of(200, {"Content-Type": "text/plain", "Set-Cookie": ["x=1", "y=2"]})
        self.assertEqual(response.headers["content-type"], "text/plain")
        self.assertEqual(response.headers.getall("SET-COOKIE"), ["x=1", "y=2"])


if __name__ == "__main__":
    unittest.main()
