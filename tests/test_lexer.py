"""
Tests for the text lexer and line assembly.
"""

import pytest

from oscope.codec import decode, encode_message
from oscope.errors import LexError
from oscope.lexer import Command, Token, assemble, parse_line, tokenize
from oscope.protocol import Message


# =============================================================================
# Tokenizer Tests
# =============================================================================

class TestTokenize:
    """Test splitting lines into typed tokens."""

    def test_address_float_string(self):
        """A typical line keeps whitespace tokens and their columns."""
        assert tokenize('/synth/freq 440.5 "lead"') == [
            Token("address", "/synth/freq", "/synth/freq", 0),
            Token("ws", " ", " ", 11),
            Token("float", 440.5, "440.5", 12),
            Token("ws", " ", " ", 17),
            Token("string", "lead", '"lead"', 18),
        ]

    def test_command(self):
        """':quit' is a single command token without the colon."""
        assert tokenize(":quit") == [Token("command", "quit", ":quit", 0)]

    @pytest.mark.parametrize("text, value", [
        ("1.5", 1.5),
        ("3.", 3.0),
        (".25", 0.25),
        ("3f", 3.0),
        ("-2.5f", -2.5),
        ("+.5f", 0.5),
    ])
    def test_floats(self, text, value):
        """Decimal points and the 'f' suffix make a float."""
        (token,) = tokenize(text)
        assert token.type == "float"
        assert token.value == value
        assert isinstance(token.value, float)

    @pytest.mark.parametrize("text, value", [
        ("0", 0),
        ("42", 42),
        ("-7", -7),
        ("+12", 12),
    ])
    def test_ints(self, text, value):
        """Plain digits with an optional sign are ints."""
        (token,) = tokenize(text)
        assert token.type == "int"
        assert token.value == value
        assert isinstance(token.value, int)

    @pytest.mark.parametrize("text, value", [
        (r'"\""', '"'),
        (r'"\\"', "\\"),
        (r'"\/"', "/"),
        (r'"\b"', "\b"),
        (r'"\f"', "\f"),
        (r'"\n"', "\n"),
        (r'"\r"', "\r"),
        (r'"\t"', "\t"),
        (r'"\u0041"', "A"),
        (r'"\u00e9"', "\xe9"),
        (r'"\u00E9"', "\xe9"),
        (r'"\ud83d\ude00"', "\U0001F600"),
        (r'"a\"b\\c\n\tA\/"', 'a"b\\c\n\tA/'),
    ])
    def test_string_escapes(self, text, value):
        """JSON-style escapes are decoded."""
        (token,) = tokenize(text)
        assert token.type == "string"
        assert token.value == value

    def test_non_ascii_text_in_string(self):
        """Only digits and names are ASCII-only; string bodies take any character."""
        (token,) = tokenize('"٣ ñ"')
        assert token.value == "٣ ñ"

    def test_empty_string(self):
        """Two quotes are an empty string."""
        assert tokenize('""') == [Token("string", "", '""', 0)]

    def test_multi_segment_address(self):
        """Addresses are one or more /segment groups of lowercase letters and digits."""
        (token,) = tokenize("/layer1/clip2/opacity")
        assert token == Token("address", "/layer1/clip2/opacity", "/layer1/clip2/opacity", 0)

    def test_tokenize_is_stateless(self):
        """The same line always gives the same tokens."""
        line = '/a 1 2.0 "x"'
        assert tokenize(line) == tokenize(line)


# =============================================================================
# Tokenizer Error Tests
# =============================================================================

class TestTokenizeErrors:
    """Test characters the lexer cannot consume."""

    def test_unterminated_string(self):
        """An opening quote without a close is reported at the quote."""
        with pytest.raises(LexError) as excinfo:
            tokenize('"abc')
        assert excinfo.value.char == '"'
        assert excinfo.value.column == 0

    def test_unterminated_string_after_address(self):
        """The column points at the offending quote."""
        with pytest.raises(LexError) as excinfo:
            tokenize('/a "abc')
        assert excinfo.value.char == '"'
        assert excinfo.value.column == 3

    def test_letters_after_digits(self):
        """'12abc' lexes 12, then fails on 'a'."""
        with pytest.raises(LexError) as excinfo:
            tokenize("/a 12abc")
        assert excinfo.value.char == "a"
        assert "'a'" in str(excinfo.value)

    def test_uppercase_address(self):
        """Uppercase segments are not part of the address syntax."""
        with pytest.raises(LexError) as excinfo:
            tokenize("/Synth")
        assert excinfo.value.char == "/"

    def test_tab_is_not_whitespace(self):
        """Only spaces separate tokens."""
        with pytest.raises(LexError) as excinfo:
            tokenize("/a\t1")
        assert excinfo.value.char == "\t"

    def test_bad_escape(self):
        """Unknown escapes do not match the string rule."""
        with pytest.raises(LexError):
            tokenize(r'"\q"')

    def test_short_unicode_escape(self):
        """\\u needs exactly four hex digits; the error points at the quote."""
        with pytest.raises(LexError) as excinfo:
            tokenize(r'"\u12"')
        assert excinfo.value.char == '"'
        assert excinfo.value.column == 0

    def test_non_ascii_digits(self):
        """Digits from other scripts are not numbers."""
        with pytest.raises(LexError) as excinfo:
            tokenize("/a ٣")
        assert excinfo.value.char == "٣"
        assert excinfo.value.column == 3

    def test_non_ascii_command_name(self):
        """Command names are ASCII word characters."""
        with pytest.raises(LexError) as excinfo:
            tokenize(":ñame")
        assert excinfo.value.char == ":"
        assert excinfo.value.column == 0


# =============================================================================
# Assembly Tests
# =============================================================================

class TestAssemble:
    """Test turning tokens into messages and commands."""

    def test_message_with_arguments(self):
        """Whitespace is dropped and tags follow the value types."""
        message = parse_line('/synth/freq 440.5 "lead"')
        assert message == Message("/synth/freq", (440.5, "lead"), "fs")

    def test_assembled_message_encodes(self):
        """An assembled message survives the codec."""
        message = parse_line('/mix 1 2.5 3f "x"')
        assert message.tags == "iffs"
        assert decode(encode_message(message)) == message

    def test_blank_line(self):
        """Blank and all-space lines produce nothing."""
        assert parse_line("") is None
        assert parse_line("    ") is None

    def test_leading_whitespace(self):
        """The first non-whitespace token is the address."""
        assert parse_line("   /a 1") == Message("/a", (1,), "i")

    def test_command(self):
        """A leading command becomes a Command."""
        assert parse_line(":quit") == Command("quit")
        assert parse_line("  :help ") == Command("help")

    def test_command_with_arguments(self):
        """Commands take no arguments."""
        with pytest.raises(LexError):
            parse_line(":quit 1")

    def test_command_in_argument_position(self):
        """Commands are never sent on the wire."""
        with pytest.raises(LexError, match="start of a line"):
            parse_line("/a 1 :quit")

    def test_missing_address(self):
        """A line must start with an address."""
        with pytest.raises(LexError, match="Unrecognized address") as excinfo:
            parse_line("1 2 3")
        assert excinfo.value.column == 0

    def test_later_address_is_a_string(self):
        """Address-shaped arguments are sent as strings."""
        assert parse_line("/route /to/here") == Message("/route", ("/to/here",), "s")

    def test_assemble_accepts_token_list(self):
        """assemble() works on tokenize() output directly."""
        assert assemble(tokenize("/x")) == Message("/x", (), "")
