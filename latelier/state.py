from __future__ import annotations

import logging
import threading
from typing import Optional

from latelier.errors import AnalysisServiceError, SubmissionRejected
from latelier.models import DiaryAnalysis
from latelier.services.history_service import HistoryStore, new_history_item
from latelier.services.speech_service import PlaybackController

logger = logging.getLogger(__name__)

IDLE = "idle"
LOADING = "loading"
SUCCESS = "success"
ERROR = "error"

DEFAULT_ERROR = "Désolé, une erreur est survenue."


class AppState:
    """Everything the page shows, changed only through the methods below."""

    def __init__(self, history: HistoryStore, playback: PlaybackController, speeds=(0.5, 0.7, 1.0, 1.2, 1.5), default_speed=1.0):
        self.history = history
        self.playback = playback
        self.speeds = tuple(float(s) for s in speeds)
        self.lock = threading.RLock()

        self.status = IDLE
        self.diary_text = ""
        self.analysis: Optional[DiaryAnalysis] = None
        self.error: Optional[str] = None
        self.active_history_id: Optional[str] = None
        self.selected_segment: Optional[int] = None
        self.playback_speed = float(default_speed)
        # analysis on screen before the current attempt started
        self._analysis_before_attempt: Optional[DiaryAnalysis] = None

    # Draft

    def edit_text(self, text):
        with self.lock:
            self.diary_text = text or ""

    # Submission

    def begin_submit(self):
        with self.lock:
            if self.status == LOADING:
                raise SubmissionRejected("analysis already in progress", status_code=409)
            text = self.diary_text
            if not text.strip():
                raise SubmissionRejected("diary text must not be empty", status_code=400)
            self._analysis_before_attempt = self.analysis if self.status == SUCCESS else None
            self.status = LOADING
            self.error = None
            self.active_history_id = None
            self.selected_segment = None
            return text

    def complete_submit(self, text, analysis):
        with self.lock:
            item = self.history.append(new_history_item(text, analysis))
            self.active_history_id = item.id
            self.analysis = analysis
            self.status = SUCCESS
            self.selected_segment = None
            self._analysis_before_attempt = None
            return item

    def fail_submit(self, message):
        with self.lock:
            self.error = message or DEFAULT_ERROR
            self.status = ERROR
            self.analysis = self._analysis_before_attempt
            self._analysis_before_attempt = None

    def submit(self, client):
        """Analyse the current draft and record it; the network call runs unlocked."""
        text = self.begin_submit()
        try:
            analysis = client.analyze(text)
        except AnalysisServiceError as e:
            self.fail_submit(str(e))
            raise
        except Exception as e:
            self.fail_submit(str(e))
            raise AnalysisServiceError(self.error) from e
        try:
            return self.complete_submit(text, analysis)
        except Exception as e:
            logger.error("Could not record analysis in history: %s", e)
            self.fail_submit(f"Impossible d'enregistrer l'historique : {e}")
            raise AnalysisServiceError(self.error) from e

    # History

    def select_history(self, item_id):
        with self.lock:
            item = self.history.get(item_id)
            if item is None:
                return None
            self.diary_text = item.original_text
            self.analysis = item.analysis
            self.active_history_id = item.id
            self.status = SUCCESS
            self.error = None
            self.selected_segment = None
            return item

    def delete_history(self, item_id):
        with self.lock:
            removed = self.history.remove(item_id)
            if removed and self.active_history_id == item_id:
                self._reset_view()
            return removed

    def clear_history(self, confirmed=False):
        with self.lock:
            if not self.history.clear(confirmed=confirmed):
                return False
            self._reset_view()
            return True

    def _reset_view(self):
        self.analysis = None
        self.diary_text = ""
        self.status = IDLE
        self.error = None
        self.active_history_id = None
        self.selected_segment = None

    # Segment detail panel

    def toggle_segment(self, index):
        with self.lock:
            if self.analysis is None or not 0 <= index < len(self.analysis.segmented_text):
                raise IndexError(f"no segment at index {index}")
            self.selected_segment = None if self.selected_segment == index else index
            return self.selected_segment

    def close_segment(self):
        with self.lock:
            self.selected_segment = None

    # Speech

    def set_speed(self, speed):
        speed = float(speed)
        if speed not in self.speeds:
            raise ValueError(f"unsupported playback speed {speed}")
        with self.lock:
            self.playback_speed = speed
        return speed

    def speak(self, text):
        return self.playback.speak(text, speed=self.playback_speed)

    # Rendering

    @property
    def visible_analysis(self):
        if self.status in (SUCCESS, ERROR):
            return self.analysis
        return None

    def snapshot(self):
        with self.lock:
            analysis = self.visible_analysis
            return {
                "status": self.status,
                "diary_text": self.diary_text,
                "error": self.error,
                "analysis": analysis.to_json() if analysis else None,
                "segments_consistent": analysis.segments_match_translation() if analysis else None,
                "active_history_id": self.active_history_id,
                "selected_segment": self.selected_segment,
                "playback_speed": self.playback_speed,
                "speeds": list(self.speeds),
                "playback": self.playback.snapshot(),
                "history": [item.to_json() for item in self.history.items],
            }
