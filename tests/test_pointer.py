"""
Tests for JSON Pointer helpers.
"""

from jref.core import pointer


class TestSegments:
    """Escaping of single reference tokens."""

    def test_plain_segment_unchanged(self):
        assert pointer.escape_segment("definitions") == "definitions"

    def test_slash_and_tilde_escaped(self):
        assert pointer.escape_segment("a/b") == "a~1b"
        assert pointer.escape_segment("m~n") == "m~0n"

    def test_tilde_escaped_before_slash(self):
        """"~1" in a key must not come back as "/"."""
        assert pointer.escape_segment("~1") == "~01"
        assert pointer.unescape_segment("~01") == "~1"

    def test_unescape_reverses_escape(self):
        for key in ("a/b", "m~n", "~/~", "$ref", ""):
            assert pointer.unescape_segment(pointer.escape_segment(key)) == key


class TestJoinSplit:
    """Building and splitting pointers."""

    def test_join_from_root(self):
        assert pointer.join(pointer.ROOT, "type") == "/type"

    def test_join_index(self):
        assert pointer.join("/items", 0) == "/items/0"

    def test_join_escapes_key(self):
        assert pointer.join("/paths", "/users") == "/paths/~1users"

    def test_split_root(self):
        assert pointer.split("") == []

    def test_split_unescapes(self):
        assert pointer.split("/paths/~1users/0") == ["paths", "/users", "0"]

    def test_empty_key(self):
        assert pointer.join("", "") == "/"
        assert pointer.split("/") == [""]


class TestFragments:
    """URI fragments to table keys."""

    def test_plain_fragment(self):
        assert pointer.from_fragment("/definitions/user") == "/definitions/user"

    def test_percent_decoded(self):
        assert pointer.from_fragment("/my%20key") == "/my key"

    def test_pointer_escapes_kept(self):
        assert pointer.from_fragment("/a~1b") == "/a~1b"
