"""Code editor model: text buffer, line-number gutter and Tab indentation.

The browser page mirrors these rules in a few lines of script; this module
is the reference behaviour and what the server uses to render the gutter.
"""

from __future__ import annotations

from typing import Callable

INDENT = "    "

ChangeListener = Callable[[str], None]
"""Called with the new text after every change."""


class EditorDisabledError(Exception):
    """Raised when an edit is attempted on a disabled (read-only) editor."""


def line_count(text: str) -> int:
    """Number of newline-delimited lines in ``text``, at least 1."""
    return max(1, len(text.split("\n")))


def gutter(text: str) -> list[int]:
    """Line numbers to show beside ``text``."""
    return list(range(1, line_count(text) + 1))


def insert_indent(text: str, start: int | None, end: int | None) -> tuple[str, int]:
    """Replace ``text[start:end]`` with ``INDENT``.

    Returns ``(new_text, cursor)`` where the cursor sits right after the
    inserted spaces. A missing offset counts as 0; offsets are clamped to
    the text and a reversed selection is normalized.
    """
    size = len(text)
    start = min(max(start or 0, 0), size)
    end = min(max(end or 0, 0), size)
    if end < start:
        start, end = end, start
    new_text = text[:start] + INDENT + text[end:]
    return new_text, start + len(INDENT)


class Editor:
    """Editable multi-line text with change notification.

    While ``disabled`` the content and gutter stay readable but every edit
    raises ``EditorDisabledError``.
    """

    def __init__(self, text: str = "", *, disabled: bool = False) -> None:
        self._text = text
        self.disabled = disabled
        self._listeners: list[ChangeListener] = []

    @property
    def text(self) -> str:
        return self._text

    @property
    def gutter(self) -> list[int]:
        return gutter(self._text)

    def on_change(self, listener: ChangeListener) -> None:
        """Register ``listener`` to be called after every text change."""
        self._listeners.append(listener)

    def set_text(self, text: str) -> None:
        """Replace the whole buffer (one keystroke's worth of change)."""
        self._check_enabled()
        self._text = text
        self._notify()

    def reset(self, text: str = "") -> None:
        """Replace the buffer programmatically, even while disabled."""
        self._text = text
        self._notify()

    def press_tab(self, start: int | None, end: int | None) -> int:
        """Insert an indent over the selection; return the new cursor offset."""
        self._check_enabled()
        self._text, cursor = insert_indent(self._text, start, end)
        self._notify()
        return cursor

    def _check_enabled(self) -> None:
        if self.disabled:
            raise EditorDisabledError("Editor is read-only while analysis is running")

    def _notify(self) -> None:
        for listener in self._listeners:
            listener(self._text)
