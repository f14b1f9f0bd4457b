"""Main window for the workspace chat client."""

from __future__ import annotations

from typing import Optional

from PySide6.QtCore import Q_ARG, QMetaObject, Qt, Slot
from PySide6.QtGui import QAction, QKeyEvent, QKeySequence, QShortcut
from PySide6.QtWidgets import (
    QHBoxLayout,
    QLabel,
    QLineEdit,
    QMainWindow,
    QPushButton,
    QScrollArea,
    QVBoxLayout,
    QWidget,
)

from ..config.paths import response_file
from ..config.store import save_settings
from ..core.logger import get_logger
from ..runtime.controller import ChatController, TranscribingRecorder
from ..runtime.speech import AudioSink, SpeechEngine
from ..runtime.voice import VoiceState
from ..state.app_state import AppState
from ..utils.shortcuts import find_conflicts, shortcut_table

LOGGER = get_logger("client")

_VOICE_LABELS = {
    VoiceState.IDLE: "Hold to talk",
    VoiceState.RECORDING: "Release to send",
    VoiceState.TRANSCRIBING: "Transcribing...",
}


class ChatWindow(QMainWindow):
    """Chat transcript, input line and push-to-talk button.

    The controller calls the ``set_*`` / ``scroll_*`` methods from its own
    loop thread; each one re-dispatches to the GUI thread.
    """

    def __init__(
        self,
        state: AppState,
        *,
        recorder: Optional[TranscribingRecorder] = None,
        speech_engine: Optional[SpeechEngine] = None,
        audio_sink: Optional[AudioSink] = None,
    ) -> None:
        super().__init__()
        self.setWindowTitle("Workspace Chat")
        self.setMinimumSize(640, 480)
        self.state = state
        self._busy = False
        self._voice_state = VoiceState.IDLE
        self._has_recorder = recorder is not None

        self._chat_log = QLabel("")
        self._chat_log.setObjectName("chatLog")
        self._chat_log.setTextFormat(Qt.TextFormat.RichText)
        self._chat_log.setWordWrap(True)
        self._chat_log.setAlignment(Qt.AlignmentFlag.AlignTop | Qt.AlignmentFlag.AlignLeft)
        self._chat_log.setTextInteractionFlags(Qt.TextInteractionFlag.TextSelectableByMouse)

        self._chat_container = QWidget()
        container_layout = QVBoxLayout(self._chat_container)
        container_layout.setContentsMargins(12, 12, 12, 12)
        container_layout.addWidget(self._chat_log)
        container_layout.addStretch(1)

        self._scroll = QScrollArea()
        self._scroll.setWidgetResizable(True)
        self._scroll.setWidget(self._chat_container)

        self._status_label = QLabel("")
        self._status_label.setObjectName("statusLabel")

        self._input = QLineEdit()
        self._input.setPlaceholderText("Type a message...")
        self._input.returnPressed.connect(self._on_send_clicked)
        self._input.textChanged.connect(self._refresh_controls)

        self._send_button = QPushButton("Send")
        self._send_button.clicked.connect(self._on_send_clicked)

        self._voice_button = QPushButton(_VOICE_LABELS[VoiceState.IDLE])
        self._voice_button.pressed.connect(self._on_voice_pressed)
        self._voice_button.released.connect(self._on_voice_released)

        self._build_layout()
        self._build_menu()

        self.controller = ChatController(
            state,
            self,
            recorder=recorder,
            speech_engine=speech_engine,
            audio_sink=audio_sink,
            response_path=response_file(),
            on_settings_changed=save_settings,
        )
        self._build_shortcuts()
        self._refresh_controls()
        self.controller.post(self.controller.start)

    # ------------------------------------------------------------------ #
    # Layout
    # ------------------------------------------------------------------ #
    def _build_layout(self) -> None:
        input_row = QHBoxLayout()
        input_row.addWidget(self._input, 1)
        input_row.addWidget(self._send_button)
        input_row.addWidget(self._voice_button)

        layout = QVBoxLayout()
        layout.addWidget(self._scroll, 1)
        layout.addWidget(self._status_label)
        layout.addLayout(input_row)

        central = QWidget()
        central.setLayout(layout)
        self.setCentralWidget(central)

    def _build_menu(self) -> None:
        menu = self.menuBar().addMenu("Chat")
        self._new_action = QAction("New chat", self)
        self._new_action.triggered.connect(self._on_new_session)
        menu.addAction(self._new_action)
        self._test_action = QAction("Test connection", self)
        self._test_action.triggered.connect(self._on_test_connection)
        menu.addAction(self._test_action)
        menu.addSeparator()
        self._auto_scroll_action = QAction("Auto-scroll", self, checkable=True)
        self._auto_scroll_action.setChecked(self.state.settings.chat.auto_scroll)
        self._auto_scroll_action.triggered.connect(self._on_toggle_auto_scroll)
        menu.addAction(self._auto_scroll_action)
        self._typing_action = QAction("Typing effect", self, checkable=True)
        self._typing_action.setChecked(self.state.settings.chat.use_typing_effect)
        self._typing_action.triggered.connect(self._on_toggle_typing_effect)
        menu.addAction(self._typing_action)

    def _build_shortcuts(self) -> None:
        shortcuts = self.state.settings.shortcuts
        rejected_names: set[str] = set()
        for kept, rejected in find_conflicts(shortcut_table(shortcuts)):
            LOGGER.warning("Shortcut %s conflicts with %s and is ignored", rejected, kept)
            rejected_names.add(rejected)
        handlers = {
            "new_session": self._on_new_session,
            "test_connection": self._on_test_connection,
            "toggle_auto_scroll": self._on_toggle_auto_scroll,
            "toggle_typing_effect": self._on_toggle_typing_effect,
        }
        self._shortcuts: list[QShortcut] = []
        for shortcut in shortcut_table(shortcuts):
            handler = handlers.get(shortcut.name)
            if handler is None or shortcut.name in rejected_names or not shortcut.sequence.strip():
                continue
            qt_shortcut = QShortcut(QKeySequence(shortcut.sequence), self)
            qt_shortcut.setContext(Qt.ShortcutContext.ApplicationShortcut)
            qt_shortcut.activated.connect(handler)
            self._shortcuts.append(qt_shortcut)
        self._push_to_talk_key = QKeySequence(shortcuts.push_to_talk)
        self._scroll_top_key = QKeySequence(shortcuts.scroll_top)
        self._scroll_bottom_key = QKeySequence(shortcuts.scroll_bottom)

    # ------------------------------------------------------------------ #
    # ChatView (called from the controller loop)
    # ------------------------------------------------------------------ #
    def set_transcript(self, markup: str) -> None:
        QMetaObject.invokeMethod(self, "_apply_transcript", Qt.QueuedConnection, Q_ARG(str, markup))

    def refresh_layout(self) -> None:
        QMetaObject.invokeMethod(self, "_apply_layout", Qt.QueuedConnection)

    def scroll_to_bottom(self) -> None:
        QMetaObject.invokeMethod(self, "_apply_scroll", Qt.QueuedConnection, Q_ARG(bool, False))

    def scroll_to_top(self) -> None:
        QMetaObject.invokeMethod(self, "_apply_scroll", Qt.QueuedConnection, Q_ARG(bool, True))

    def set_status(self, text: str) -> None:
        QMetaObject.invokeMethod(self._status_label, "setText", Qt.QueuedConnection, Q_ARG(str, text))

    def set_busy(self, busy: bool) -> None:
        QMetaObject.invokeMethod(self, "_apply_busy", Qt.QueuedConnection, Q_ARG(bool, busy))

    def set_voice_state(self, state: VoiceState) -> None:
        QMetaObject.invokeMethod(self, "_apply_voice_state", Qt.QueuedConnection, Q_ARG(str, state.value))

    @Slot(str)
    def _apply_transcript(self, markup: str) -> None:
        self._chat_log.setText(markup.replace("\n", "<br>"))

    @Slot()
    def _apply_layout(self) -> None:
        self._chat_log.adjustSize()
        layout = self._chat_container.layout()
        if layout is not None:
            layout.activate()

    @Slot(bool)
    def _apply_scroll(self, to_top: bool) -> None:
        bar = self._scroll.verticalScrollBar()
        bar.setValue(bar.minimum() if to_top else bar.maximum())

    @Slot(bool)
    def _apply_busy(self, busy: bool) -> None:
        self._busy = busy
        self._refresh_controls()

    @Slot(str)
    def _apply_voice_state(self, value: str) -> None:
        self._voice_state = VoiceState(value)
        self._voice_button.setText(_VOICE_LABELS[self._voice_state])
        recording = self._voice_state is VoiceState.RECORDING
        self._voice_button.setStyleSheet("background-color: #d9534f; color: white;" if recording else "")
        self._refresh_controls()

    # ------------------------------------------------------------------ #
    # User input
    # ------------------------------------------------------------------ #
    def _refresh_controls(self) -> None:
        idle = self._voice_state is VoiceState.IDLE
        self._send_button.setEnabled(not self._busy and idle and bool(self._input.text().strip()))
        if self._voice_state is not VoiceState.RECORDING:
            self._voice_button.setEnabled(not self._busy and idle and self._has_recorder)

    def _on_send_clicked(self) -> None:
        text = self._input.text().strip()
        if not text or self._busy:
            return
        self._input.clear()
        self.controller.post(self.controller.send_text, text)

    def _on_voice_pressed(self) -> None:
        self.controller.post(self.controller.press_voice)

    def _on_voice_released(self) -> None:
        self.controller.post(self.controller.release_voice)

    def _on_new_session(self) -> None:
        self.controller.post(self.controller.start_new_session)

    def _on_test_connection(self) -> None:
        self.controller.post(self.controller.test_connection)

    def _on_toggle_auto_scroll(self) -> None:
        future = self.controller.post(self.controller.toggle_auto_scroll)
        future.add_done_callback(
            lambda fut: QMetaObject.invokeMethod(
                self._auto_scroll_action, "setChecked", Qt.QueuedConnection, Q_ARG(bool, bool(fut.result()))
            )
        )

    def _on_toggle_typing_effect(self) -> None:
        future = self.controller.post(self.controller.toggle_typing_effect)
        future.add_done_callback(
            lambda fut: QMetaObject.invokeMethod(
                self._typing_action, "setChecked", Qt.QueuedConnection, Q_ARG(bool, bool(fut.result()))
            )
        )

    def keyPressEvent(self, event: QKeyEvent) -> None:  # type: ignore[override]
        if not self._input.hasFocus() and not event.isAutoRepeat():
            pressed = QKeySequence(event.keyCombination())
            if pressed.matches(self._push_to_talk_key) == QKeySequence.SequenceMatch.ExactMatch:
                self._on_voice_pressed()
                return
            if pressed.matches(self._scroll_top_key) == QKeySequence.SequenceMatch.ExactMatch:
                self.controller.post(self.controller.scroll_to_top)
                return
            if pressed.matches(self._scroll_bottom_key) == QKeySequence.SequenceMatch.ExactMatch:
                self.controller.post(self.controller.scroll_to_bottom)
                return
        super().keyPressEvent(event)

    def keyReleaseEvent(self, event: QKeyEvent) -> None:  # type: ignore[override]
        if not self._input.hasFocus() and not event.isAutoRepeat():
            released = QKeySequence(event.keyCombination())
            if released.matches(self._push_to_talk_key) == QKeySequence.SequenceMatch.ExactMatch:
                self._on_voice_released()
                return
        super().keyReleaseEvent(event)

    def closeEvent(self, event) -> None:  # type: ignore[override]
        self.controller.shutdown()
        super().closeEvent(event)
