"""Tests for Slack event parsing, mention stripping and command matching."""

import pytest

from relay.slack import Command, MalformedEventError, match_command, parse_event, strip_mentions


class TestParseEvent:
    """Tests for parse_event."""

    def test_parse_channel_message(self):
        """Test parsing a top-level channel message."""
        event = parse_event(
            {"type": "message", "channel": "C1", "ts": "1700.1", "text": "hi", "user": "U1"}
        )

        assert event.channel == "C1"
        assert event.ts == "1700.1"
        assert event.thread_ts is None
        assert event.root_ts == "1700.1"
        assert event.conversation_key == "C1:1700.1"
        assert not event.is_from_bot

    def test_thread_reply_roots_at_thread(self):
        """Test a threaded reply uses the thread root timestamp."""
        event = parse_event({"channel": "C1", "ts": "1700.5", "thread_ts": "1700.1"})
        assert event.root_ts == "1700.1"

    def test_bot_detection(self):
        """Test bot_id and bot_message subtype both mark bot events."""
        assert parse_event({"channel": "C1", "ts": "1", "bot_id": "B1"}).is_from_bot
        assert parse_event({"channel": "C1", "ts": "1", "subtype": "bot_message"}).is_from_bot

    def test_direct_message_and_subtypes(self):
        """Test channel type and relayable subtype flags."""
        dm = parse_event({"channel": "D1", "ts": "1", "channel_type": "im"})
        edited = parse_event({"channel": "D1", "ts": "1", "subtype": "message_changed"})

        assert dm.is_direct_message
        assert dm.is_relayable
        assert not edited.is_relayable

    def test_missing_text_becomes_empty(self):
        assert parse_event({"channel": "C1", "ts": "1"}).text == ""

    @pytest.mark.parametrize(
        "payload",
        [
            {"ts": "1700.1", "text": "no channel"},
            {"channel": "C1", "text": "no ts"},
            {},
            "not a dict",
        ],
    )
    def test_malformed_payloads(self, payload):
        """Test payloads without channel or ts are rejected."""
        with pytest.raises(MalformedEventError):
            parse_event(payload)


class TestStripMentions:
    """Tests for strip_mentions."""

    def test_strips_leading_mention(self):
        assert strip_mentions("<@U123ABC> what's new?") == "what's new?"

    def test_strips_multiple_mentions(self):
        assert strip_mentions("<@U1> hello <@U2>") == "hello"

    def test_strips_labelled_mention(self):
        assert strip_mentions("<@U1|bot> hello") == "hello"

    def test_only_mention_is_empty(self):
        assert strip_mentions("<@U123ABC>   ") == ""

    def test_empty_text(self):
        assert strip_mentions("") == ""


class TestMatchCommand:
    """Tests for match_command."""

    @pytest.mark.parametrize(
        "text,expected",
        [
            ("ping", Command.PING),
            ("  PING ", Command.PING),
            ("!reset session", Command.RESET_SESSION),
            ("!Reset Session", Command.RESET_SESSION),
            ("!session info", Command.SESSION_INFO),
        ],
    )
    def test_commands(self, text, expected):
        assert match_command(text) is expected

    @pytest.mark.parametrize(
        "text",
        ["", "ping me later", "please !reset session", "!session", "hello"],
    )
    def test_non_commands(self, text):
        assert match_command(text) is None
