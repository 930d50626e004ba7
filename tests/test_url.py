import unittest

from cgienv.controller.errors import UrlCompositionError
from cgienv.controller.url import Url


class TestUrl(unittest.TestCase):

    def test_compose(self):
        url = Url("http", "jabberwocky", 81, "/test.cgi/some/info", "choice=12")
        self.assertEqual(str(url), "http://jabberwocky:81/test.cgi/some/info?choice=12")

    def test_default_port_is_omitted(self):
        self.assertEqual(str(Url("http", "example.com", 80, "/")), "http://example.com/")
        self.assertEqual(str(Url("https", "example.com", 443, "/a")), "https://example.com/a")
        self.assertEqual(str(Url("https", "example.com", 80, "/a")), "https://example.com:80/a")

    def test_host_is_lowercased(self):
        self.assertEqual(Url("http", "Example.COM").host, "example.com")

    def test_path_is_quoted(self):
        self.assertEqual(str(Url("http", "h", None, "/a b/c")), "http://h/a%20b/c")

    def test_relative_path_gets_slash(self):
        self.assertEqual(Url("http", "h", None, "x.cgi").path, "/x.cgi")

    def test_ipv6_host(self):
        self.assertEqual(str(Url("http", "::1", 8080, "/")), "http://[::1]:8080/")
        self.assertEqual(Url("http", "[::1]").host, "::1")

    def test_parse(self):
        url = Url.parse("http://Example.com:8080/a%20b/c?x=1")
        self.assertEqual(url.scheme, "http")
        self.assertEqual(url.host, "example.com")
        self.assertEqual(url.port, 8080)
        self.assertEqual(url.path, "/a b/c")
        self.assertEqual(url.query, "x=1")
        self.assertEqual(str(url), "http://example.com:8080/a%20b/c?x=1")

    def test_replace_returns_new_value(self):
        url = Url("http", "h", None, "/a")
        other = url.replace(path="/b", query="q=1")
        self.assertEqual(str(url), "http://h/a")
        self.assertEqual(str(other), "http://h/b?q=1")

    def test_from_file_path(self):
        url = Url.from_file_path("/tmp/some dir/script.cgi")
        self.assertEqual(url.scheme, "file")
        self.assertEqual(url.host, "")
        self.assertTrue(str(url).startswith("file:///"))
        self.assertTrue(str(url).endswith("/some%20dir/script.cgi"))

    def test_invalid_host(self):
        for host in ("bad host", "a/b", "user@host", "[::zz]"):
            with self.assertRaises(UrlCompositionError):
                Url("http", host)

    def test_invalid_port(self):
        for port in (-1, 65536, "eighty"):
            with self.assertRaises(UrlCompositionError):
                Url("http", "h", port)

    def test_invalid_scheme(self):
        for scheme in ("", "1http", "ht tp"):
            with self.assertRaises(UrlCompositionError):
                Url(scheme, "h")

    def test_parse_invalid_port(self):
        with self.assertRaises(UrlCompositionError) as context:
            Url.parse("http://h:99999/")
        self.assertIsInstance(context.exception.__cause__, ValueError)

    def test_composition_error_is_value_error(self):
        with self.assertRaises(ValueError):
            Url("http", "h", 70000)

    def test_http_needs_host_to_render(self):
        url = Url("http", "", 81, "/x")
        with self.assertRaises(UrlCompositionError):
            str(url)
        self.assertEqual(str(url.replace(host="h")), "http://h:81/x")

    def test_file_url_without_host_renders(self):
        self.assertEqual(str(Url("file", "", None, "/srv/x.cgi")), "file:///srv/x.cgi")


if __name__ == '__main__':
    unittest.main()
