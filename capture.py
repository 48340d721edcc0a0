"""Capture strategy selection, probed once per process."""

from __future__ import annotations

import logging
from typing import Callable

from models import CaptureStrategy

logger = logging.getLogger(__name__)


class CaptureStrategySelector:
    def __init__(self, probe: Callable[[], bool], force_buffered: bool = False) -> None:
        self._force_buffered = force_buffered
        self._live_supported = bool(probe())
        if self._live_supported:
            logger.debug("on-device recognition is supported")
        else:
            logger.debug("on-device recognition not supported, will use remote transcription")

    @property
    def live_supported(self) -> bool:
        return self._live_supported

    @property
    def strategy(self) -> CaptureStrategy:
        if self._live_supported and not self._force_buffered:
            return CaptureStrategy.LIVE
        return CaptureStrategy.BUFFERED
