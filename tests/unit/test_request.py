"""
Unit tests for HTTP request parsing.
"""

import dataclasses

import pytest

from microweb.http.request import (
    HTTPParseError,
    Request,
    RequestParser,
    _BytesLineReader,
    parse_query_string,
    parse_request,
)


class TestRequestParser:
    """Tests for RequestParser and parse_request."""

    def test_parse_simple_get(self):
        """A bare request line yields method, path and an empty query."""
        request = parse_request(b"GET /hello HTTP/1.1\r\n\r\n")

        assert request.method == "GET"
        assert request.path == "/hello"
        assert request.query_string == ""
        assert dict(request.query_params) == {}
        assert dict(request.headers) == {}

    def test_parse_with_client_address(self, sample_get_request: bytes):
        """The client address is recorded on the request."""
        parser = RequestParser()
        request = parser.parse(_BytesLineReader(sample_get_request), ("127.0.0.1", 12345))

        assert request.client_address == ("127.0.0.1", 12345)

    def test_parse_headers(self, sample_get_request: bytes):
        """Headers keep the case the client sent."""
        request = parse_request(sample_get_request)

        assert request.headers["Host"] == "localhost:4567"
        assert request.get_header("User-Agent") == "pytest"
        assert request.get_header("user-agent") is None
        assert request.get_header("X-Missing", "none") == "none"

    def test_parse_query_params(self, sample_get_request: bytes):
        """The query string is split from the path and decoded."""
        request = parse_request(sample_get_request)

        assert request.path == "/greeting"
        assert request.query_string == "name=Angie%20Ramos"
        assert request.query_param("name") == "Angie Ramos"
        assert request.query_param("missing") == ""
        assert request.query_param("missing", "World") == "World"

    def test_target_split_at_first_question_mark(self):
        """Only the first '?' separates path from query."""
        request = parse_request(b"GET /a?b=1?c HTTP/1.1\r\n\r\n")

        assert request.path == "/a"
        assert request.query_string == "b=1?c"
        assert request.query_param("b") == "1?c"

    def test_path_is_not_decoded(self):
        """The path is kept byte-exact, percent escapes included."""
        request = parse_request(b"GET /my%20file.html HTTP/1.1\r\n\r\n")

        assert request.path == "/my%20file.html"

    def test_duplicate_header_last_wins(self):
        """A repeated header name overwrites the earlier value."""
        raw = b"GET / HTTP/1.1\r\nX-Token: first\r\nX-Token: second\r\n\r\n"
        request = parse_request(raw)

        assert request.headers["X-Token"] == "second"

    def test_header_name_and_value_trimmed(self):
        """Whitespace around the name and value is removed."""
        raw = b"GET / HTTP/1.1\r\n  X-Padded  :   spaced out   \r\n\r\n"
        request = parse_request(raw)

        assert request.headers["X-Padded"] == "spaced out"

    def test_header_value_keeps_later_colons(self):
        """Headers split at the FIRST colon only."""
        raw = b"GET / HTTP/1.1\r\nHost: localhost:4567\r\n\r\n"
        request = parse_request(raw)

        assert request.headers["Host"] == "localhost:4567"

    def test_lines_without_usable_colon_are_skipped(self):
        """No colon, or a colon at position 0, means the line is ignored."""
        raw = (
            b"GET / HTTP/1.1\r\n"
            b"NoColonHere\r\n"
            b": empty name\r\n"
            b"Accept: */*\r\n"
            b"\r\n"
        )
        request = parse_request(raw)

        assert dict(request.headers) == {"Accept": "*/*"}

    def test_bare_newline_line_endings(self):
        """LF-only line endings are accepted."""
        request = parse_request(b"GET /x HTTP/1.1\nHost: a\n\n")

        assert request.path == "/x"
        assert request.headers["Host"] == "a"

    def test_headers_end_at_end_of_stream(self):
        """A missing blank line is tolerated when the stream ends."""
        request = parse_request(b"GET /x HTTP/1.1\r\nHost: a\r\n")

        assert request.headers["Host"] == "a"

    def test_body_is_not_read(self, sample_post_request: bytes):
        """Parsing stops at the blank line; the body is ignored."""
        request = parse_request(sample_post_request)

        assert request.method == "POST"
        assert request.path == "/submit"
        assert request.headers["Content-Length"] == "16"
        assert '{"name"' not in request.headers

    def test_method_and_version_not_validated(self):
        """Any three tokens form a valid request line."""
        request = parse_request(b"BREW /pot HTCPCP/1.0\r\n\r\n")

        assert request.method == "BREW"
        assert request.path == "/pot"

    def test_trailing_space_does_not_add_token(self):
        """Trailing spaces after the version are ignored."""
        request = parse_request(b"GET /hello HTTP/1.1  \r\n\r\n")

        assert request.path == "/hello"

    @pytest.mark.parametrize("raw", [
        b"BADREQUEST\r\n\r\n",
        b"GET /hello\r\n\r\n",
        b"GET /a b HTTP/1.1\r\n\r\n",
        b"GET  /hello HTTP/1.1\r\n\r\n",
    ])
    def test_parse_invalid_request_line(self, raw: bytes):
        """Anything but exactly three tokens is a 400."""
        with pytest.raises(HTTPParseError) as exc_info:
            parse_request(raw)

        assert exc_info.value.status_code == 400

    def test_parse_empty_request(self):
        """An empty request line or closed stream is a 400."""
        for raw in (b"", b"\r\n"):
            with pytest.raises(HTTPParseError) as exc_info:
                parse_request(raw)
            assert exc_info.value.status_code == 400

    def test_invalid_utf8_is_replaced(self):
        """Undecodable bytes do not abort parsing."""
        request = parse_request(b"GET /caf\xe9 HTTP/1.1\r\n\r\n")

        assert request.path == "/caf�"


class TestRequest:
    """Tests for the Request value type."""

    def test_request_is_immutable(self):
        """Attributes cannot be reassigned."""
        request = Request.from_target("GET", "/a?x=1")

        with pytest.raises(dataclasses.FrozenInstanceError):
            request.path = "/b"

    def test_mappings_are_read_only(self):
        """Header and query mappings reject mutation."""
        request = Request.from_target("GET", "/a?x=1", headers={"Host": "h"})

        with pytest.raises(TypeError):
            request.headers["Host"] = "evil"
        with pytest.raises(TypeError):
            request.query_params["x"] = "2"

    def test_source_dict_changes_do_not_leak(self):
        """The Request copies the headers it was built from."""
        headers = {"Host": "h"}
        request = Request.from_target("GET", "/", headers=headers)
        headers["Host"] = "changed"

        assert request.headers["Host"] == "h"

    def test_from_target_without_query(self):
        """No '?' means an empty query string."""
        request = Request.from_target("GET", "/plain")

        assert request.path == "/plain"
        assert request.query_string == ""


class TestParseQueryString:
    """Tests for query string decoding."""

    def test_percent_decoding(self):
        """%20 decodes to a space."""
        assert parse_query_string("name=Angie%20Ramos") == {"name": "Angie Ramos"}

    def test_plus_is_space(self):
        """Form encoding turns '+' into a space."""
        assert parse_query_string("q=a+b") == {"q": "a b"}

    def test_utf8_sequences(self):
        """Multi-byte escapes decode as UTF-8."""
        assert parse_query_string("city=Bogot%C3%A1") == {"city": "Bogotá"}

    def test_multiple_pairs(self):
        """Pairs are separated by '&'."""
        assert parse_query_string("a=1&b=2") == {"a": "1", "b": "2"}

    def test_duplicate_key_last_wins(self):
        """A repeated key keeps its last value."""
        assert parse_query_string("a=1&a=2") == {"a": "2"}

    def test_split_at_first_equals(self):
        """Only the first '=' separates key and value."""
        assert parse_query_string("k=v=w") == {"k": "v=w"}

    def test_missing_value(self):
        """A key without '=' or with nothing after it maps to ''."""
        assert parse_query_string("flag&empty=") == {"flag": "", "empty": ""}

    def test_equals_at_start_keeps_whole_pair_as_key(self):
        """With no key before '=', the whole pair is the key."""
        assert parse_query_string("=v") == {"=v": ""}

    def test_empty_pairs_skipped(self):
        """Stray '&' separators are ignored."""
        assert parse_query_string("a=1&&b=2&") == {"a": "1", "b": "2"}

    def test_empty_string(self):
        """An empty query yields no parameters."""
        assert parse_query_string("") == {}
