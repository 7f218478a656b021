"""
Tests for console rendering of packets.
"""

from datetime import datetime

from oscope.codec import encode, encode_bundle
from oscope.protocol import IMMEDIATELY, NTP_OFFSET, Bundle, Message, TimeTag
from oscope.render import (
    banner, error, format_args, format_datagram, format_packet, format_time, format_timetag,
)

RECEIVED = datetime(2024, 1, 2, 3, 4, 5, 6000)


class TestFormatValues:
    """Test argument and time formatting."""

    def test_format_time(self):
        """Month/day/year then 24h time with milliseconds."""
        assert format_time(RECEIVED) == "1/2/2024 03:04:05.006"

    def test_format_args(self):
        """Floats get 3 decimals, strings quotes, blobs their size."""
        assert format_args((1, 2.5, "hi", b"abc"), "ifsb") == '1 2.500 "hi" <Blob (3B)>'

    def test_format_timetag_immediate(self):
        assert format_timetag(IMMEDIATELY) == "immediately"

    def test_format_timetag_local_time(self):
        """Real time tags are shown in local time."""
        expected = format_time(datetime.fromtimestamp(1_700_000_000))
        assert format_timetag(TimeTag(NTP_OFFSET + 1_700_000_000, 0)) == expected


class TestFormatPacket:
    """Test tree rendering."""

    def test_message(self, plain):
        """A message is its address followed by its arguments."""
        lines = format_packet(Message.build("/synth/freq", 440.5, "lead"))
        assert [plain(line) for line in lines] == ['/synth/freq 440.500 "lead"']

    def test_message_without_arguments(self, plain):
        assert [plain(line) for line in format_packet(Message.build("/x"))] == ["/x"]

    def test_nested_bundles_are_indented(self, plain):
        """Each bundle level indents its children by two spaces."""
        tree = Bundle(IMMEDIATELY, (
            Message.build("/a", 1),
            Bundle(IMMEDIATELY, (Message.build("/b"),)),
        ))
        assert [plain(line) for line in format_packet(tree)] == [
            "Bundle (immediately)",
            "  /a 1",
            "  Bundle (immediately)",
            "    /b",
        ]


class TestFormatDatagram:
    """Test the per-datagram block printed by the shells."""

    def test_decoded(self, plain):
        """Header line then the decoded tree."""
        lines = format_datagram(encode("/a", [1]), "127.0.0.1", 9000, received=RECEIVED)
        assert [plain(line) for line in lines] == [
            "",
            "127.0.0.1:9000 (received 1/2/2024 03:04:05.006)",
            "/a 1",
        ]

    def test_bundle(self, plain):
        data = encode_bundle(Bundle(IMMEDIATELY, (Message.build("/a", "x"),)))
        lines = [plain(line) for line in format_datagram(data, "::1", 9000, received=RECEIVED)]
        assert lines[1].startswith("[::1]:9000")
        assert lines[2:] == ["Bundle (immediately)", '  /a "x"']

    def test_decode_error_is_reported(self, plain):
        """Malformed datagrams produce a red error line instead of raising."""
        lines = format_datagram(b"", "127.0.0.1", 9000, received=RECEIVED, note="reply")
        assert plain(lines[1]) == "127.0.0.1:9000 (reply 1/2/2024 03:04:05.006)"
        assert plain(lines[2]) == "Empty packet"
        assert lines[2] == error("Empty packet")


class TestBanner:
    """Test banner text."""

    def test_banner_contains_text(self, plain):
        text = plain(banner("Listening for OSC on 127.0.0.1:9000"))
        assert text.strip() == "Listening for OSC on 127.0.0.1:9000"
        assert text.startswith("  ")
