"""Tests for provider_registry.reader module."""

import io

import pytest

from provider_registry.exceptions import ResourceAccessError
from provider_registry.locator import FileResource, RegistryResource
from provider_registry.reader import RegistryReader, parse_line

from conftest import TrackingResource


class TestParseLine:
    """Test parse_line function."""

    @pytest.mark.parametrize(
        "line, expected",
        [
            ("plugin.A\n", "plugin.A"),
            ("   plugin.A   \r\n", "plugin.A"),
            ("\tplugin.A # trailing comment\n", "plugin.A"),
            ("plugin.A#comment", "plugin.A"),
            ("pkg.module:Outer.Inner\n", "pkg.module:Outer.Inner"),
        ],
    )
    def test_provider_names(self, line, expected):
        """Test lines that hold a provider name."""
        assert parse_line(line) == expected

    @pytest.mark.parametrize("line", ["", "\n", "   \t\n", "# comment\n", "   # indented comment", "#"])
    def test_no_entry(self, line):
        """Test blank and comment-only lines."""
        assert parse_line(line) is None

    def test_only_first_hash_starts_comment(self):
        """Everything after the first '#' is dropped, including later '#'s."""
        assert parse_line("a.B # one # two") == "a.B"


class FailingResource(RegistryResource):
    """Resource whose open() fails."""

    location = "memory:failing"

    def open(self):
        raise OSError("permission denied")


class TextStreamResource(RegistryResource):
    """Resource whose open() returns a text stream."""

    location = "memory:text"

    def open(self):
        self.stream = io.StringIO("plugin.A\n")
        return self.stream


class TestRegistryReader:
    """Test RegistryReader class."""

    def test_reads_lines_and_closes_at_end(self):
        """Test all lines are read and the stream closed once."""
        resource = TrackingResource("memory:0", "plugin.A\n# comment\nplugin.B")
        reader = RegistryReader(resource).open()

        assert list(reader) == ["plugin.A\n", "# comment\n", "plugin.B"]
        assert reader.closed
        assert resource.open_count == 1
        assert resource.close_count == 1

    def test_readline_after_end_returns_none(self):
        """Test reading past the end keeps returning None."""
        resource = TrackingResource("memory:0", "plugin.A\n")
        reader = RegistryReader(resource).open()

        assert reader.readline() == "plugin.A\n"
        assert reader.readline() is None
        assert reader.readline() is None
        assert resource.close_count == 1

    def test_close_is_idempotent(self):
        """Test closing twice closes the stream once."""
        resource = TrackingResource("memory:0", "plugin.A\nplugin.B\n")
        reader = RegistryReader(resource).open()
        reader.readline()

        reader.close()
        reader.close()

        assert resource.close_count == 1
        assert reader.readline() is None

    def test_context_manager_closes(self):
        """Test leaving a with block closes the stream."""
        resource = TrackingResource("memory:0", "plugin.A\nplugin.B\n")
        with RegistryReader(resource) as reader:
            assert reader.readline() == "plugin.A\n"
        assert resource.close_count == 1

    def test_decodes_utf8_and_drops_bom(self, tmp_path):
        """Test UTF-8 decoding without a leading BOM."""
        path = tmp_path / "registry"
        path.write_bytes("\ufeffplugin.Caf\u00e9\n".encode("utf-8"))

        reader = RegistryReader(FileResource(path)).open()

        assert parse_line(reader.readline()) == "plugin.Caf\u00e9"

    def test_decode_error_closes_and_raises(self, tmp_path):
        """Test invalid UTF-8 closes the stream and raises."""
        path = tmp_path / "registry"
        path.write_bytes(b"plugin.A\n\xff\xfe\xfa broken\n")
        resource = FileResource(path)

        reader = RegistryReader(resource).open()
        with pytest.raises(ResourceAccessError) as exc_info:
            for _ in range(3):
                reader.readline()

        assert exc_info.value.resource is resource
        assert isinstance(exc_info.value.__cause__, UnicodeDecodeError)
        assert reader.closed

    def test_open_error_raises_resource_access_error(self):
        """Test open failures become ResourceAccessError."""
        reader = RegistryReader(FailingResource())

        with pytest.raises(ResourceAccessError, match="memory:failing") as exc_info:
            reader.open()

        assert isinstance(exc_info.value.__cause__, OSError)
        assert reader.closed

    def test_cannot_reopen(self):
        """Test a closed reader can't be reopened."""
        resource = TrackingResource("memory:0", "plugin.A\n")
        reader = RegistryReader(resource).open()
        reader.close()

        with pytest.raises(ResourceAccessError):
            reader.open()
        assert resource.open_count == 1

    def test_text_stream_is_closed_and_rejected(self):
        """Test a resource opened as text is closed and reported."""
        resource = TextStreamResource()
        reader = RegistryReader(resource)

        with pytest.raises(ResourceAccessError, match="memory:text") as exc_info:
            reader.open()

        assert isinstance(exc_info.value.__cause__, TypeError)
        assert resource.stream.closed
        assert reader.closed
