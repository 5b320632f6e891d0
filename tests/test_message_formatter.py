"""Tests for Hipchat -> Slack message formatting."""

import pytest

from core.message_formatter import GroupingState, MessageFormatter, build_attachment, parse_timestamp
from core.models import MessageFile, SlackAttachment

from conftest import make_message


@pytest.fixture
def formatter():
    return MessageFormatter(username="hipchat", icon_emoji=":speech_balloon:")


def at(seconds):
    minutes, secs = divmod(seconds, 60)
    return f"2016-05-10T08:{minutes:02d}:{secs:02d}+00:00"


class TestParseTimestamp:
    def test_iso_with_offset(self):
        assert parse_timestamp("1970-01-01T08:00:10+08:00") == 10

    def test_zulu_and_fraction(self):
        assert parse_timestamp("1970-01-01T00:00:05.123456Z") == pytest.approx(5.123456)

    def test_naive_is_utc(self):
        assert parse_timestamp("1970-01-01T00:01:00") == 60

    @pytest.mark.parametrize("value", ["", "yesterday", "10/05/2016 nonsense"])
    def test_unparseable_is_zero(self, value):
        assert parse_timestamp(value) == 0


class TestHeader:
    def test_first_message_has_header(self, formatter):
        payload = formatter.format("General", "#general", make_message("1", date=at(0), text="hi"), GroupingState())
        assert payload.text == f"*[From Hipchat, General, Alice, {at(0)}]*\n\nhi"

    def test_same_sender_within_window_grouped(self, formatter):
        state = GroupingState()
        formatter.format("General", "#g", make_message("1", date=at(0)), state)
        second = formatter.format("General", "#g", make_message("2", date=at(10), text="again"), state)
        assert second.text == "again"

    def test_same_sender_after_window_gets_header(self, formatter):
        state = GroupingState()
        formatter.format("General", "#g", make_message("1", date=at(0)), state)
        second = formatter.format("General", "#g", make_message("2", date=at(400), text="later"), state)
        assert second.text.startswith("*[From Hipchat, General, Alice,")
        assert second.text.endswith("\n\nlater")

    def test_exactly_window_grouped(self, formatter):
        state = GroupingState()
        formatter.format("General", "#g", make_message("1", date=at(0)), state)
        second = formatter.format("General", "#g", make_message("2", date=at(300), text="edge"), state)
        assert second.text == "edge"

    def test_different_sender_gets_header(self, formatter):
        state = GroupingState()
        formatter.format("General", "#g", make_message("1", date=at(0)), state)
        second = formatter.format("General", "#g", make_message("2", sender="Bob", date=at(1), text="yo"), state)
        assert second.text == f"*[From Hipchat, General, Bob, {at(1)}]*\n\nyo"

    def test_window_measured_from_previous_message(self, formatter):
        state = GroupingState()
        texts = [
            formatter.format("General", "#g", make_message(str(i), date=at(s), text=str(i)), state).text
            for i, s in enumerate([0, 200, 400, 600])
        ]
        assert texts[1:] == ["1", "2", "3"]

    def test_unparseable_dates_group_same_sender(self, formatter):
        state = GroupingState()
        formatter.format("General", "#g", make_message("1", date="garbage"), state)
        second = formatter.format("General", "#g", make_message("2", date="garbage", text="x"), state)
        assert second.text == "x"

    def test_custom_label(self):
        formatter = MessageFormatter("u", ":e:", source_label="Stride")
        payload = formatter.format("General", "#g", make_message("1"), GroupingState())
        assert payload.text.startswith("*[From Stride, General,")


class TestLinkPreview:
    def test_link_always_skipped(self, formatter):
        state = GroupingState()
        assert formatter.format("General", "#g", make_message("1", sender="Link"), state) is None
        assert state == GroupingState()

    def test_link_does_not_break_grouping(self, formatter):
        state = GroupingState()
        formatter.format("General", "#g", make_message("1", date=at(0)), state)
        formatter.format("General", "#g", make_message("2", sender="Link", date=at(5)), state)
        third = formatter.format("General", "#g", make_message("3", date=at(10), text="same"), state)
        assert third.text == "same"


class TestPayload:
    def test_fields(self, formatter):
        payload = formatter.format("General", "#general", make_message("1"), GroupingState())
        data = payload.to_dict()
        assert data["channel"] == "#general"
        assert data["username"] == "hipchat"
        assert data["icon_emoji"] == ":speech_balloon:"
        assert "attachments" not in data

    def test_image_attachment(self, formatter):
        file = MessageFile(name="cat.png", url="https://f/cat.png", size=2048, thumb_url="https://f/cat_thumb.png")
        payload = formatter.format("General", "#g", make_message("1", file=file), GroupingState())
        assert payload.to_dict()["attachments"] == [{
            "title": "cat.png",
            "image_url": "https://f/cat.png",
            "thumb_url": "https://f/cat_thumb.png",
        }]

    def test_generic_attachment(self, formatter):
        file = MessageFile(name="report.pdf", url="https://f/report.pdf", size=12345)
        payload = formatter.format("General", "#g", make_message("1", file=file), GroupingState())
        assert payload.to_dict()["attachments"] == [{
            "title": "report.pdf (12345 B)",
            "title_link": "https://f/report.pdf",
        }]

    def test_build_attachment_empty_thumb_is_generic(self):
        attachment = build_attachment(MessageFile(name="a.txt", url="u", size=1, thumb_url=""))
        assert attachment == SlackAttachment(title="a.txt (1 B)", title_link="u")


class TestFormatRoom:
    def test_skips_and_groups(self, formatter):
        messages = [
            make_message("1", date=at(0), text="one"),
            make_message("2", sender="Link", date=at(1), text="preview"),
            make_message("3", date=at(2), text="two"),
            make_message("4", sender="Bob", date=at(3), text="three"),
        ]
        results = list(formatter.format_room("General", "#g", messages))
        assert [m.id for m, _ in results] == ["1", "2", "3", "4"]
        assert results[1][1] is None
        payloads = [p for _, p in results if p is not None]
        assert [p.text.split("\n\n")[-1] for p in payloads] == ["one", "two", "three"]
        assert payloads[1].text == "two"
        assert payloads[2].text.startswith("*[From Hipchat, General, Bob,")

    def test_fresh_state_per_room(self, formatter):
        first = list(formatter.format_room("General", "#g", [make_message("1", date=at(0))]))
        second = list(formatter.format_room("Ops", "#o", [make_message("2", date=at(1), text="x")]))
        assert first[0][1].text.startswith("*[From Hipchat, General,")
        assert second[0][1].text.startswith("*[From Hipchat, Ops, Alice,")
