"""
Unit tests for file helpers.
"""

import pytest

from folio.utils.files import bytes_to_human_readable, get_file_name_from_url


@pytest.mark.unit
class TestBytesToHumanReadable:
    @pytest.mark.parametrize(
        "size,expected",
        [
            (0, "0 B"),
            (None, "0 B"),
            (512, "512 B"),
            (1024, "1.0 KB"),
            (10 * 1024 * 1024, "10.0 MB"),
            (5 * 1024**3, "5.0 GB"),
        ],
    )
    def test_formats_sizes(self, size, expected):
        assert bytes_to_human_readable(size) == expected


@pytest.mark.unit
class TestGetFileNameFromUrl:
    def test_last_path_segment(self):
        assert get_file_name_from_url("https://example.com/files/report.pdf") == "report.pdf"

    def test_ignores_query_string(self):
        assert get_file_name_from_url("https://example.com/a/image.png?size=large") == "image.png"

    def test_decodes_percent_escapes(self):
        assert get_file_name_from_url("https://example.com/My%20File.txt") == "My File.txt"

    def test_trailing_slash(self):
        assert get_file_name_from_url("https://example.com/folder/") == "folder"

    @pytest.mark.parametrize("url", ["https://example.com", "https://example.com/"])
    def test_no_path(self, url):
        assert get_file_name_from_url(url) is None
