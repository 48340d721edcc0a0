"""Transcript merging and the user-visible input buffer."""

from __future__ import annotations

from typing import TYPE_CHECKING, List

if TYPE_CHECKING:  # pragma: no cover
    from models import TranscriptFragment


def join_text(base: str, addition: str) -> str:
    """Append ``addition`` to ``base`` with a single separating space."""
    if not addition:
        return base
    if not base:
        return addition
    return f"{base.rstrip()} {addition.lstrip()}"


class InputBuffer:
    """Text the user is about to send, plus a transient recognition preview.

    The preview is never part of ``text``. It is replaced wholesale on every
    interim result and only shows up through ``display``.
    """

    def __init__(self, text: str = "") -> None:
        self.text = text
        self.preview = ""

    @property
    def display(self) -> str:
        return join_text(self.text, self.preview)

    def append(self, addition: str) -> None:
        addition = addition.strip()
        if addition:
            self.text = join_text(self.text, addition)

    def set_preview(self, preview: str) -> None:
        self.preview = preview.strip()

    def clear_preview(self) -> None:
        self.preview = ""

    def clear(self) -> None:
        self.text = ""
        self.preview = ""


class TranscriptAccumulator:
    def __init__(self) -> None:
        self._finals: List[str] = []
        self._interim = ""

    @property
    def committed(self) -> str:
        return " ".join(self._finals).strip()

    @property
    def interim(self) -> str:
        return self._interim

    @property
    def preview(self) -> str:
        return join_text(self.committed, self._interim)

    def add(self, fragment: TranscriptFragment) -> None:
        text = fragment.text.strip()
        if fragment.is_final:
            if text:
                self._finals.append(text)
            self._interim = ""
            return
        self._interim = text

    def reset(self) -> None:
        self._finals.clear()
        self._interim = ""
