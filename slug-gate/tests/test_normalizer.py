"""
Request Normalizer Tests
========================
Path decoding, segment filtering and upload-root containment.
"""

import os

import pytest


class TestDecodeRequestPath:
    """Tests for percent-decoding and NUL stripping."""

    def test_decodes_until_stable(self):
        """Double-encoded input should be fully decoded."""
        from slug_gate.normalizer import decode_request_path

        assert decode_request_path("a%252Fb.jpg") == "a/b.jpg"

    def test_stops_after_three_passes(self):
        """Quadruple encoding keeps one layer."""
        from slug_gate.normalizer import decode_request_path

        assert decode_request_path("%25252525") == "%25"

    def test_strips_nul_bytes(self):
        """Raw and encoded NUL bytes are removed."""
        from slug_gate.normalizer import decode_request_path

        assert decode_request_path("a\0b%00c.jpg") == "abc.jpg"

    def test_non_string_is_empty(self):
        """Non-string parameters decode to nothing."""
        from slug_gate.normalizer import decode_request_path

        assert decode_request_path(None) == ""
        assert decode_request_path(["a"]) == ""


class TestNormalizeRelativePath:
    """Tests for segment-level normalization."""

    def test_collapses_separators_and_dots(self):
        """Empty and dot segments are dropped."""
        from slug_gate.normalizer import normalize_relative_path

        assert normalize_relative_path("/a//b/./c.jpg") == "a/b/c.jpg"

    def test_backslashes_become_slashes(self):
        """Windows separators are treated as path separators."""
        from slug_gate.normalizer import normalize_relative_path

        assert normalize_relative_path("a\\\\b\\c.jpg") == "a/b/c.jpg"

    @pytest.mark.parametrize("raw", [
        "../../etc/passwd",
        "%2e%2e/%2e%2e/etc/passwd",
        "%252e%252e%252f%252e%252e%252fetc/passwd",
        "..\\..\\etc\\passwd",
        "public/../../../etc/passwd",
    ])
    def test_parent_segments_are_dropped(self, raw):
        """Traversal segments never survive, however encoded."""
        from slug_gate.normalizer import normalize_relative_path

        relative = normalize_relative_path(raw)

        assert ".." not in relative.split("/")
        assert relative.endswith("etc/passwd")

    @pytest.mark.parametrize("raw", ["", "/", "%00", "../..", "./././"])
    def test_empty_result_is_bad_request(self, raw):
        """Nothing usable left means 400."""
        from slug_gate.errors import BadRequestError
        from slug_gate.normalizer import normalize_relative_path

        with pytest.raises(BadRequestError) as exc_info:
            normalize_relative_path(raw)

        assert exc_info.value.status_code == 400


class TestResolveUploadFile:
    """Tests for on-disk canonicalization."""

    def test_resolves_existing_file(self, upload_tree):
        """A file inside the root resolves to its canonical path."""
        from slug_gate.normalizer import normalize_request

        absolute, relative = normalize_request("public%2Fpic.jpg", str(upload_tree / "uploads"))

        assert relative == "public/pic.jpg"
        assert absolute == os.path.realpath(upload_tree / "uploads" / "public" / "pic.jpg")

    @pytest.mark.parametrize("raw", [
        "../outside.txt",
        "%2e%2e%2foutside.txt",
        "%252e%252e%252foutside.txt",
    ])
    def test_traversal_never_leaves_root(self, upload_tree, raw):
        """Encoded traversal to a sibling file is a 404, not a read."""
        from slug_gate.errors import NotFoundError
        from slug_gate.normalizer import normalize_request

        with pytest.raises(NotFoundError):
            normalize_request(raw, str(upload_tree / "uploads"))

    def test_symlink_escape_is_rejected(self, upload_tree):
        """A symlink pointing outside the root does not count as inside."""
        from slug_gate.errors import NotFoundError
        from slug_gate.normalizer import resolve_upload_file

        link = upload_tree / "uploads" / "public" / "leak.txt"
        os.symlink(upload_tree / "outside.txt", link)

        with pytest.raises(NotFoundError):
            resolve_upload_file(str(upload_tree / "uploads"), "public/leak.txt")

    def test_directory_is_not_a_file(self, upload_tree):
        """Directories are not deliverable."""
        from slug_gate.errors import NotFoundError
        from slug_gate.normalizer import resolve_upload_file

        with pytest.raises(NotFoundError):
            resolve_upload_file(str(upload_tree / "uploads"), "public")

    def test_missing_upload_base(self, upload_tree):
        """An unset or missing upload root is a 404."""
        from slug_gate.errors import NotFoundError
        from slug_gate.normalizer import resolve_upload_file

        with pytest.raises(NotFoundError):
            resolve_upload_file("", "public/pic.jpg")
        with pytest.raises(NotFoundError):
            resolve_upload_file(str(upload_tree / "nope"), "public/pic.jpg")

    def test_sibling_prefix_directory_is_outside(self, upload_tree):
        """``uploads-old`` is not inside ``uploads``."""
        from slug_gate.normalizer import _is_within

        root = str(upload_tree / "uploads")
        assert _is_within(root, root) is True
        assert _is_within(root + os.sep + "a.jpg", root) is True
        assert _is_within(root + "-old" + os.sep + "a.jpg", root) is False
