from __future__ import annotations

import asyncio
import time

import pytest
from fakes import FakeChannel

from tickchat.errors import ChannelError
from tickchat.server.frames import Frame, FrameKind
from tickchat.server.multiplexer import EventMultiplexer, Heartbeat, LoopExit


class Recorder:
    def __init__(self, channel: FakeChannel, *, message_delay: float = 0.0) -> None:
        self.channel = channel
        self.message_delay = message_delay
        self.events: list[tuple[str, str, float]] = []

    async def on_message(self, text: str) -> None:
        if self.message_delay:
            await asyncio.sleep(self.message_delay)
        self.events.append(("message", text, time.monotonic()))
        await self.channel.send(f"reply:{text}")

    async def on_tick(self) -> None:
        self.events.append(("tick", "", time.monotonic()))
        await self.channel.send("Tick")

    def kinds(self) -> list[str]:
        return [kind for kind, _, _ in self.events]

    def messages(self) -> list[str]:
        return [text for kind, text, _ in self.events if kind == "message"]


def _multiplexer(channel: FakeChannel, recorder: Recorder, interval: float) -> EventMultiplexer:
    return EventMultiplexer(
        channel,
        Heartbeat(interval),
        on_message=recorder.on_message,
        on_tick=recorder.on_tick,
    )


@pytest.mark.asyncio
async def test_close_frame_ends_loop_after_earlier_frames() -> None:
    channel = FakeChannel()
    recorder = Recorder(channel)
    channel.feed(Frame.text("one"), Frame.binary(b"two"), Frame.close(), Frame.text("never"))

    result = await _multiplexer(channel, recorder, 60.0).run()

    assert result is LoopExit.PEER_CLOSED
    assert recorder.messages() == ["one", "two"]
    assert channel.sent == ["Tick", "reply:one", "reply:two"]


@pytest.mark.asyncio
async def test_exhausted_source_ends_loop() -> None:
    channel = FakeChannel()
    recorder = Recorder(channel)
    channel.feed(Frame.text("only"), None)

    result = await _multiplexer(channel, recorder, 60.0).run()

    assert result is LoopExit.EXHAUSTED
    assert recorder.messages() == ["only"]


@pytest.mark.asyncio
async def test_control_frames_are_ignored() -> None:
    channel = FakeChannel()
    recorder = Recorder(channel)
    channel.feed(Frame(FrameKind.CONTROL), Frame.text("after"), Frame.close())

    result = await _multiplexer(channel, recorder, 60.0).run()

    assert result is LoopExit.PEER_CLOSED
    assert recorder.messages() == ["after"]


@pytest.mark.asyncio
async def test_receive_error_propagates() -> None:
    channel = FakeChannel()
    recorder = Recorder(channel)
    channel.feed(ChannelError("reset by peer"))

    with pytest.raises(ChannelError, match="reset by peer"):
        await _multiplexer(channel, recorder, 60.0).run()


@pytest.mark.asyncio
async def test_tick_send_error_propagates() -> None:
    channel = FakeChannel()
    channel.send_error = ChannelError("broken pipe")
    recorder = Recorder(channel)

    with pytest.raises(ChannelError, match="broken pipe"):
        await _multiplexer(channel, recorder, 60.0).run()
    assert recorder.kinds() == ["tick"]


@pytest.mark.asyncio
async def test_heartbeat_ticks_while_idle() -> None:
    channel = FakeChannel()
    recorder = Recorder(channel)
    task = asyncio.create_task(_multiplexer(channel, recorder, 0.05).run())

    await asyncio.sleep(0.23)
    channel.feed(Frame.close())
    result = await asyncio.wait_for(task, timeout=1.0)

    assert result is LoopExit.PEER_CLOSED
    assert 3 <= channel.sent.count("Tick") <= 6
    assert set(channel.sent) == {"Tick"}


@pytest.mark.asyncio
async def test_tick_is_deferred_not_burst_while_handler_runs() -> None:
    channel = FakeChannel()
    recorder = Recorder(channel, message_delay=0.33)
    task = asyncio.create_task(_multiplexer(channel, recorder, 0.1).run())

    await asyncio.sleep(0.02)
    channel.feed(Frame.text("slow"))
    await asyncio.sleep(0.55)
    channel.feed(Frame.close())
    await asyncio.wait_for(task, timeout=1.0)

    kinds = recorder.kinds()
    message_index = kinds.index("message")
    # Nothing else ran while the slow handler was busy.
    assert kinds[:message_index] == ["tick"]
    assert kinds[message_index + 1] == "tick"
    message_done = recorder.events[message_index][2]
    ticks_after = [at for kind, _, at in recorder.events[message_index + 1 :] if kind == "tick"]
    assert ticks_after[0] - message_done < 0.05
    # The missed ticks collapse into one; the next waits for its grid slot.
    assert len(ticks_after) >= 2
    assert ticks_after[1] - ticks_after[0] > 0.02


@pytest.mark.asyncio
async def test_steady_frames_do_not_starve_heartbeat() -> None:
    channel = FakeChannel()
    recorder = Recorder(channel, message_delay=0.01)
    channel.feed(*(Frame.text(f"m{i}") for i in range(40)), Frame.close())

    result = await asyncio.wait_for(_multiplexer(channel, recorder, 0.05).run(), timeout=5.0)

    assert result is LoopExit.PEER_CLOSED
    assert recorder.messages() == [f"m{i}" for i in range(40)]
    assert recorder.kinds().count("tick") >= 3


@pytest.mark.asyncio
async def test_handlers_never_overlap() -> None:
    channel = FakeChannel()
    active = 0
    overlaps = 0

    async def on_message(_text: str) -> None:
        nonlocal active, overlaps
        active += 1
        overlaps += active > 1
        await asyncio.sleep(0.02)
        active -= 1

    async def on_tick() -> None:
        nonlocal active, overlaps
        active += 1
        overlaps += active > 1
        await asyncio.sleep(0.005)
        active -= 1

    channel.feed(*(Frame.text(str(i)) for i in range(10)), Frame.close())
    multiplexer = EventMultiplexer(channel, Heartbeat(0.01), on_message=on_message, on_tick=on_tick)

    await asyncio.wait_for(multiplexer.run(), timeout=5.0)

    assert overlaps == 0
