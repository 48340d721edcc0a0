from __future__ import annotations

from pathlib import Path
from unittest.mock import MagicMock, patch

import recognizer
from capture import CaptureStrategySelector
from models import CaptureStrategy
from recognizer import is_live_recognition_supported


def test_selector_prefers_live_when_supported() -> None:
    selector = CaptureStrategySelector(lambda: True)
    assert selector.strategy == CaptureStrategy.LIVE


def test_selector_falls_back_to_buffered() -> None:
    selector = CaptureStrategySelector(lambda: False)
    assert selector.strategy == CaptureStrategy.BUFFERED


def test_selector_probes_once() -> None:
    probe = MagicMock(return_value=True)
    selector = CaptureStrategySelector(probe)

    for _ in range(3):
        assert selector.strategy == CaptureStrategy.LIVE

    probe.assert_called_once()


def test_force_buffered_overrides_support() -> None:
    selector = CaptureStrategySelector(lambda: True, force_buffered=True)
    assert selector.live_supported is True
    assert selector.strategy == CaptureStrategy.BUFFERED


@patch("recognizer.sd", MagicMock())
@patch("recognizer.vosk", MagicMock())
def test_probe_requires_model_directory(tmp_path: Path) -> None:
    assert is_live_recognition_supported(str(tmp_path)) is True
    assert is_live_recognition_supported(str(tmp_path / "missing")) is False
    assert is_live_recognition_supported("") is False


@patch("recognizer.sd", MagicMock())
def test_probe_without_vosk_is_unsupported(tmp_path: Path, monkeypatch) -> None:  # noqa: ANN001
    monkeypatch.setattr(recognizer, "vosk", None)
    assert is_live_recognition_supported(str(tmp_path)) is False
