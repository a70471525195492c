"""
Capture sessions deliver one finalized text to a callback.

Speech recognition lives in the host environment (a browser, a phone).
Its recognizer events are fed into a TranscriptCapture; when recognition
is not available the ManualTextCapture fallback takes typed text instead.
Either way the consumer only sees the `on_final_text` callback.
"""

from enum import Enum
from typing import Callable, List, Optional
import logging

logger = logging.getLogger(__name__)

FinalTextCallback = Callable[[str], None]

# Recognizer errors that do not end the session
RECOVERABLE_ERRORS = {"no-speech"}


class CaptureState(str, Enum):
    IDLE = "idle"
    LISTENING = "listening"


class CaptureSession:
    """Base capture session: delivers finalized text once per session"""

    def __init__(self, on_final_text: FinalTextCallback):
        self.on_final_text = on_final_text
        self.state = CaptureState.IDLE

    def _deliver(self, text: str) -> bool:
        text = (text or "").strip()
        self.state = CaptureState.IDLE
        if not text:
            logger.debug("Capture ended with no text, nothing delivered")
            return False
        self.on_final_text(text)
        return True


class TranscriptCapture(CaptureSession):
    """Accumulates recognizer results until the user stops the session"""

    def __init__(self, on_final_text: FinalTextCallback):
        super().__init__(on_final_text)
        self._final_parts: List[str] = []
        self.interim = ""

    @property
    def transcript(self) -> str:
        return "".join(self._final_parts)

    def start(self) -> None:
        self._final_parts = []
        self.interim = ""
        self.state = CaptureState.LISTENING

    def add_result(self, text: str, is_final: bool) -> None:
        """Feed one recognizer result"""
        if self.state != CaptureState.LISTENING:
            return
        if is_final:
            self._final_parts.append(text)
            self.interim = ""
        else:
            self.interim = text

    def stop(self) -> bool:
        """User signalled completion; deliver the finalized transcript"""
        if self.state != CaptureState.LISTENING:
            return False
        return self._deliver(self.transcript)

    def recognizer_ended(self) -> bool:
        """Recognizer stopped on its own while still listening"""
        if self.state != CaptureState.LISTENING:
            return False
        return self._deliver(self.transcript)

    def recognizer_error(self, code: str) -> None:
        logger.warning(f"Speech recognition error: {code}")
        if code not in RECOVERABLE_ERRORS:
            self.state = CaptureState.IDLE
            self._final_parts = []
            self.interim = ""


class ManualTextCapture(CaptureSession):
    """Fallback for hosts without speech recognition: typed text"""

    def submit(self, text: str) -> bool:
        return self._deliver(text)


def open_capture(on_final_text: FinalTextCallback, speech_available: bool = True) -> CaptureSession:
    """Pick the capture session the host supports"""
    if speech_available:
        return TranscriptCapture(on_final_text)
    logger.info("Speech recognition unavailable, using manual text entry")
    return ManualTextCapture(on_final_text)


def capture_manual_text(text: Optional[str], on_final_text: FinalTextCallback) -> bool:
    """One-shot manual capture"""
    return ManualTextCapture(on_final_text).submit(text or "")
