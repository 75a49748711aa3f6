import pytest

from chanbot.access.mute import MuteSet
from chanbot.irc.outbound import Outbox, fragment_text


def test_short_text_is_one_piece():
    assert list(fragment_text("hello")) == ["hello"]
    assert list(fragment_text("x" * 400)) == ["x" * 400]


def test_long_text_splits_into_401_char_segments_in_order():
    text = "a" * 401 + "b" * 401 + "c" * 98
    pieces = list(fragment_text(text))
    assert pieces == ["a" * 401, "b" * 401, "c" * 98]
    assert "".join(pieces) == text


def test_empty_remainder_is_not_sent():
    assert list(fragment_text("z" * 401)) == ["z" * 401]
    assert list(fragment_text("z" * 802)) == ["z" * 401, "z" * 401]


def test_mute_toggle_is_case_insensitive():
    muted = MuteSet()
    assert muted.toggle("#Quiet") is True
    assert "#quiet" in muted
    assert muted.is_muted("#QUIET")
    assert muted.toggle("#quiet") is False
    assert len(muted) == 0


class TestOutbox:
    def setup_method(self):
        self.sent: list[str] = []
        self.muted = MuteSet()

        async def send_raw(line: str) -> None:
            self.sent.append(line)

        self.outbox = Outbox(send_raw, self.muted)

    @pytest.mark.asyncio
    async def test_message_and_notice_verbs(self):
        assert await self.outbox.message("#chan", "hi") == 1
        assert await self.outbox.notice("alice", "psst") == 1
        assert self.sent == ["PRIVMSG #chan :hi", "NOTICE alice :psst"]

    @pytest.mark.asyncio
    async def test_muted_target_sends_nothing(self):
        self.muted.toggle("#Quiet")
        assert await self.outbox.message("#quiet", "hello") == 0
        assert await self.outbox.notice("#QUIET", "hello") == 0
        assert self.sent == []

    @pytest.mark.asyncio
    async def test_long_message_is_fragmented(self):
        assert await self.outbox.message("#chan", "y" * 900) == 3
        assert [len(line) for line in self.sent] == [
            len("PRIVMSG #chan :") + 401,
            len("PRIVMSG #chan :") + 401,
            len("PRIVMSG #chan :") + 98,
        ]
