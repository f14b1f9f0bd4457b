from __future__ import annotations

import asyncio

import pytest

from conftest import FakeView
from desktop.workspace_chat.config.settings import ChatSettings
from desktop.workspace_chat.runtime.status import StatusReporter
from desktop.workspace_chat.runtime.transcript import FRAME_INTERVAL, TranscriptRenderer
from desktop.workspace_chat.state.session import SessionManager


def build(view: FakeView, **overrides: object) -> tuple[TranscriptRenderer, SessionManager]:
    settings = ChatSettings(**overrides)
    session = SessionManager()
    renderer = TranscriptRenderer(view, session, StatusReporter(view), settings)
    return renderer, session


@pytest.mark.asyncio
async def test_first_message_replaces_transcript(view: FakeView) -> None:
    renderer, session = build(view)
    renderer.append("You", "Hello")
    assert view.transcript == "<b>You:</b> Hello"
    assert session.should_clear_before_next_append() is False

    renderer.append("AI", "Hi")
    assert view.transcript == "<b>You:</b> Hello\n<b>AI:</b> Hi"

    renderer.clear()
    assert view.transcript == ""
    renderer.append("System", "Again")
    assert view.transcript == "<b>System:</b> Again"
    await renderer.aclose()


@pytest.mark.asyncio
async def test_new_session_keeps_history_when_clearing_disabled(view: FakeView) -> None:
    renderer, session = build(view, clear_chat_on_new_session=False)
    renderer.append("You", "one")
    session.new_session()
    renderer.append("You", "two")
    assert view.transcript == "\n<b>You:</b> one\n<b>You:</b> two"
    await renderer.aclose()


@pytest.mark.asyncio
async def test_message_text_is_escaped(view: FakeView) -> None:
    renderer, _ = build(view)
    renderer.append("You", "<i>x</i> & y")
    assert view.transcript == "<b>You:</b> &lt;i&gt;x&lt;/i&gt; &amp; y"
    await renderer.aclose()


@pytest.mark.asyncio
async def test_reveal_types_full_text_and_clears_status(view: FakeView) -> None:
    renderer, _ = build(view, typing_speed=1000.0)
    task = renderer.append("AI", "a<b")
    assert task is not None
    assert view.transcript == "<b>AI:</b> "
    await task
    assert view.transcript == "<b>AI:</b> a&lt;b"
    assert "AI is typing..." in view.statuses
    assert view.status == ""
    await renderer.aclose()


@pytest.mark.asyncio
async def test_new_append_cancels_reveal_in_progress(view: FakeView) -> None:
    renderer, _ = build(view, typing_speed=1.0)
    task = renderer.append("AI", "abc")
    await asyncio.sleep(0)
    assert view.transcript == "<b>AI:</b> a"

    renderer.append("System", "Stop")
    await asyncio.sleep(0)
    assert task.cancelled() or task.done()
    assert renderer.is_revealing is False
    assert view.transcript == "<b>AI:</b> a\n<b>System:</b> Stop"
    assert view.status == ""
    await renderer.aclose()


@pytest.mark.asyncio
async def test_scroll_snaps_twice_across_a_frame(view: FakeView) -> None:
    renderer, _ = build(view)
    renderer.append("You", "Hello")
    await asyncio.sleep(FRAME_INTERVAL * 3)
    assert view.scrolls == ["bottom", "bottom"]
    await renderer.aclose()


@pytest.mark.asyncio
async def test_rapid_appends_restart_the_scroll_snap(view: FakeView) -> None:
    renderer, _ = build(view)
    for word in ("one", "two", "three"):
        renderer.append("You", word)
    await asyncio.sleep(FRAME_INTERVAL * 3)
    assert view.scrolls == ["bottom", "bottom"]
    await renderer.aclose()


@pytest.mark.asyncio
async def test_no_scroll_when_auto_scroll_disabled(view: FakeView) -> None:
    renderer, _ = build(view, auto_scroll=False)
    renderer.append("You", "Hello")
    await asyncio.sleep(FRAME_INTERVAL * 3)
    assert view.scrolls == []
    renderer.scroll_to_top()
    assert view.scrolls == ["top"]
    await renderer.aclose()
