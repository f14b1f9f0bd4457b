from __future__ import annotations

from desktop.workspace_chat.state.session import SessionManager


def test_session_id_present_from_start() -> None:
    manager = SessionManager()
    assert manager.current_session_id.startswith("chat-session-")
    assert manager.should_clear_before_next_append() is True


def test_new_session_resets_fresh_flag() -> None:
    manager = SessionManager()
    first = manager.current_session_id
    manager.on_first_message_rendered()
    assert manager.should_clear_before_next_append() is False

    second = manager.new_session()
    assert second != first
    assert manager.current_session_id == second
    assert manager.should_clear_before_next_append() is True


def test_ids_are_unique() -> None:
    manager = SessionManager(prefix="t")
    ids = {manager.new_session() for _ in range(200)}
    assert len(ids) == 200
