import io
import ipaddress
import threading
import unittest

from cgienv.controller.content import Json, Multipart, Text
from cgienv.controller.errors import (
    InvalidEnvironmentError, MultipartBoundaryMissingError, MultipleLoadError,
    UnsupportedMethodError, UrlCompositionError,
)
from cgienv.controller.guard import LoadGuard
from cgienv.controller.request import Method, load


def cgi_environ(**overrides):
    environ = {
        "GATEWAY_INTERFACE": "CGI/1.1",
        "SERVER_PROTOCOL": "HTTP/1.1",
        "REQUEST_METHOD": "GET",
        "SERVER_NAME": "jabberwocky",
        "SERVER_PORT": "81",
        "SCRIPT_NAME": "/test.cgi",
        "PATH_INFO": "/some/info",
        "PATH_TRANSLATED": "/var/www/html/some/info",
        "QUERY_STRING": "choice=12",
        "REMOTE_ADDR": "192.168.0.7",
    }
    environ.update(overrides)
    return {key: value for key, value in environ.items() if value is not None}


class TestLoad(unittest.TestCase):

    def setUp(self):
        self.guard = LoadGuard.isolated()

    def test_load_get(self):
        request = load(cgi_environ(), io.BytesIO(b""), self.guard)

        self.assertEqual(request.url(), "http://jabberwocky:81/test.cgi/some/info?choice=12")
        self.assertEqual(request.method, Method.GET)
        self.assertEqual(request.http_version, "HTTP/1.1")
        self.assertEqual(request.cgi_version, "CGI/1.1")
        self.assertEqual(request.script, "/test.cgi")
        self.assertEqual(request.path_info, "/some/info")
        self.assertEqual(request.path_translated, "/var/www/html/some/info")
        self.assertEqual(request.query, "choice=12")
        self.assertEqual(request.client, ipaddress.ip_address("192.168.0.7"))
        self.assertIsNone(request.content)

    def test_versions_default_when_absent(self):
        environ = cgi_environ(SERVER_PROTOCOL=None, GATEWAY_INTERFACE=None)
        request = load(environ, io.BytesIO(), self.guard)
        self.assertEqual(request.http_version, "HTTP/1.0")
        self.assertEqual(request.cgi_version, "CGI/1.1")

    def test_empty_query_and_path_info(self):
        request = load(cgi_environ(QUERY_STRING="", PATH_INFO=""), io.BytesIO(), self.guard)
        self.assertEqual(request.url(), "http://jabberwocky:81/test.cgi")
        self.assertIsNone(request.query)
        self.assertIsNone(request.path_info)

    def test_https(self):
        environ = cgi_environ(HTTPS="on", SERVER_PORT="443", PATH_INFO=None, QUERY_STRING=None)
        request = load(environ, io.BytesIO(), self.guard)
        self.assertEqual(request.url(), "https://jabberwocky/test.cgi")

    def test_http_host_fallback(self):
        environ = cgi_environ(SERVER_NAME=None, SERVER_PORT=None, HTTP_HOST="example.org:8000")
        request = load(environ, io.BytesIO(), self.guard)
        self.assertTrue(request.url().startswith("http://example.org:8000/test.cgi"))

    def test_http_host_ipv6(self):
        environ = cgi_environ(SERVER_NAME=None, SERVER_PORT=None, HTTP_HOST="[::1]:8080")
        request = load(environ, io.BytesIO(), self.guard)
        self.assertEqual(request.full_url.host, "::1")
        self.assertEqual(request.full_url.port, 8080)
        self.assertTrue(request.url().startswith("http://[::1]:8080/test.cgi"))

    def test_http_host_ipv6_without_port(self):
        environ = cgi_environ(SERVER_NAME=None, SERVER_PORT=None, HTTP_HOST="[2001:db8::1]")
        request = load(environ, io.BytesIO(), self.guard)
        self.assertTrue(request.url().startswith("http://[2001:db8::1]/test.cgi"))

    def test_post_reads_content_length_bytes(self):
        stdin = io.BytesIO(b'{"a": 1}EXTRA')
        environ = cgi_environ(REQUEST_METHOD="POST", CONTENT_TYPE="application/json", CONTENT_LENGTH="8")

        request = load(environ, stdin, self.guard)

        self.assertEqual(request.method, Method.POST)
        self.assertEqual(request.content, Json('{"a": 1}'))
        self.assertEqual(stdin.read(), b"EXTRA")

    def test_put_multipart(self):
        body = (
            b"--b\r\nContent-Type: text/plain\r\n\r\nfirst\r\n"
            b"--b\r\nContent-Type: application/json\r\n\r\n{}\r\n"
            b"--b--\r\n"
        )
        environ = cgi_environ(
            REQUEST_METHOD="PUT",
            CONTENT_TYPE="multipart/mixed; boundary=b",
            CONTENT_LENGTH=str(len(body)),
        )
        request = load(environ, io.BytesIO(body), self.guard)
        self.assertEqual(request.content, Multipart([Text("first"), Json("{}")]))

    def test_post_without_content_length(self):
        stdin = io.BytesIO(b"ignored")
        environ = cgi_environ(REQUEST_METHOD="POST", CONTENT_TYPE="text/plain")
        request = load(environ, stdin, self.guard)
        self.assertEqual(request.content, Text(""))

    def test_get_does_not_read_stdin(self):
        stdin = io.BytesIO(b"body")
        request = load(cgi_environ(CONTENT_LENGTH="4", CONTENT_TYPE="text/plain"), stdin, self.guard)
        self.assertIsNone(request.content)
        self.assertEqual(stdin.read(), b"body")

    def test_multipart_without_boundary(self):
        environ = cgi_environ(REQUEST_METHOD="POST", CONTENT_TYPE="multipart/form-data", CONTENT_LENGTH="2")
        with self.assertRaises(MultipartBoundaryMissingError):
            load(environ, io.BytesIO(b"--"), self.guard)

    def test_user_wins_over_ident(self):
        environ = cgi_environ(REMOTE_USER="alice", REMOTE_IDENT="id-1", AUTH_TYPE="Basic")
        request = load(environ, io.BytesIO(), self.guard)
        self.assertEqual(request.user, "alice")
        self.assertIsNone(request.ident)
        self.assertEqual(request.auth, "Basic")

    def test_ident_only(self):
        request = load(cgi_environ(REMOTE_IDENT="id-1"), io.BytesIO(), self.guard)
        self.assertEqual(request.ident, "id-1")
        self.assertIsNone(request.user)

    def test_client_from_remote_host(self):
        environ = cgi_environ(REMOTE_ADDR=None, REMOTE_HOST="::1")
        self.assertEqual(load(environ, io.BytesIO(), self.guard).client, ipaddress.ip_address("::1"))

    def test_remote_host_name_uses_loopback(self):
        environ = cgi_environ(REMOTE_ADDR=None, REMOTE_HOST="client.example.org")
        self.assertEqual(load(environ, io.BytesIO(), self.guard).client, ipaddress.ip_address("127.0.0.1"))


class TestLoadErrors(unittest.TestCase):

    def setUp(self):
        self.guard = LoadGuard.isolated()

    def test_missing_script_name(self):
        with self.assertRaises(InvalidEnvironmentError) as context:
            load(cgi_environ(SCRIPT_NAME=None), io.BytesIO(), self.guard)
        self.assertEqual(context.exception.variable, "SCRIPT_NAME")

    def test_missing_server_name(self):
        with self.assertRaises(InvalidEnvironmentError):
            load(cgi_environ(SERVER_NAME=None), io.BytesIO(), self.guard)

    def test_bad_content_length(self):
        for length in ("abc", "-1"):
            guard = LoadGuard.isolated()
            environ = cgi_environ(REQUEST_METHOD="POST", CONTENT_LENGTH=length)
            with self.assertRaises(InvalidEnvironmentError):
                load(environ, io.BytesIO(), guard)

    def test_unsupported_method(self):
        with self.assertRaises(UnsupportedMethodError):
            load(cgi_environ(REQUEST_METHOD="PATCH"), io.BytesIO(), self.guard)

    def test_bad_port(self):
        with self.assertRaises(UrlCompositionError):
            load(cgi_environ(SERVER_PORT="eighty"), io.BytesIO(), self.guard)

    def test_bad_host(self):
        with self.assertRaises(UrlCompositionError):
            load(cgi_environ(SERVER_NAME="bad host"), io.BytesIO(), self.guard)

    def test_bad_remote_addr(self):
        with self.assertRaises(InvalidEnvironmentError):
            load(cgi_environ(REMOTE_ADDR="not-an-ip"), io.BytesIO(), self.guard)


class TestLoadOnce(unittest.TestCase):

    def setUp(self):
        LoadGuard._instance = None

    def tearDown(self):
        LoadGuard._instance = None

    def test_second_load_fails(self):
        load(cgi_environ(), io.BytesIO())
        with self.assertRaises(MultipleLoadError):
            load(cgi_environ(), io.BytesIO())

    def test_failed_load_still_consumes_guard(self):
        with self.assertRaises(InvalidEnvironmentError):
            load(cgi_environ(SCRIPT_NAME=None), io.BytesIO())
        with self.assertRaises(MultipleLoadError):
            load(cgi_environ(), io.BytesIO())

    def test_concurrent_loads(self):
        results = []
        lock = threading.Lock()
        start = threading.Barrier(8)

        def worker():
            start.wait()
            try:
                load(cgi_environ(), io.BytesIO())
                outcome = "loaded"
            except MultipleLoadError:
                outcome = "multiple"
            with lock:
                results.append(outcome)

        threads = [threading.Thread(target=worker) for _ in range(8)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        self.assertEqual(results.count("loaded"), 1)
        self.assertEqual(results.count("multiple"), 7)


if __name__ == '__main__':
    unittest.main()
