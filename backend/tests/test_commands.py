"""Tests for command parsing."""
import pytest

from vaultbot.bot.commands import (
    Command,
    parse_command,
    parse_context,
    parse_creds,
    parse_query,
    parse_show,
)
from vaultbot.errors import ValidationError


class TestParseCommand:

    def test_plain_text(self):
        assert parse_command("hello there") is None
        assert parse_command("   ") is None

    def test_simple(self):
        assert parse_command("/help") == Command(name="help", args="")

    def test_bot_suffix_is_stripped_and_args_kept(self):
        assert parse_command("/show@VaultBot 3") == Command(name="show", args="3")

    def test_case_insensitive_name(self):
        assert parse_command("/ListCreds").name == "listcreds"

    def test_lone_slash(self):
        assert parse_command("/") is None

    def test_newline_separates_args(self):
        assert parse_command("/context\nrecipe bake").args == "recipe bake"


class TestParseCreds:

    def test_password_keeps_spaces(self):
        assert parse_creds("bank alice correct horse  battery") == (
            "bank", "alice", "correct horse  battery"
        )

    def test_missing_password(self):
        with pytest.raises(ValidationError) as exc:
            parse_creds("bank alice")
        assert "/creds <title> <username> <password>" in exc.value.user_message


class TestParseShow:

    def test_number(self):
        assert parse_show("12") == 12

    @pytest.mark.parametrize("args", ["", "abc", "0", "-3"])
    def test_invalid(self, args):
        with pytest.raises(ValidationError) as exc:
            parse_show(args)
        assert exc.value.user_message == "❌ Please provide a valid credential number."


class TestParseContext:

    def test_title_and_content(self):
        assert parse_context("recipe bake at 350") == ("recipe", "bake at 350")

    def test_missing_content(self):
        with pytest.raises(ValidationError):
            parse_context("recipe")


class TestParseQuery:

    def test_query(self):
        assert parse_query("  baking temperature ") == "baking temperature"

    def test_empty(self):
        with pytest.raises(ValidationError):
            parse_query("")
