import os
import re
import configparser

class Config:
    def __init__(self, root_path):
        self.root_path = root_path
        self._cfg = configparser.ConfigParser()
        self._cfg.read(os.path.join(root_path, "config.ini"), encoding="utf-8")

        # Flask Config
        self.SEND_FILE_MAX_AGE_DEFAULT = 0
        self.TEMPLATES_AUTO_RELOAD = True
        self.LOG_DIR = os.environ.get("LOG_DIR") or self._cfg.get("app", "log_dir", fallback=os.path.join(root_path, "logs"))

        # OpenAI-compatible AI Config
        self.OPENAI_API_KEY = os.environ.get("OPENAI_API_KEY") or os.environ.get("API_KEY") or self._cfg.get("openai", "api_key", fallback="")
        self.OPENAI_BASE_URL = os.environ.get("OPENAI_BASE_URL") or self._cfg.get("openai", "base_url", fallback="https://api.openai.com/v1")
        self.ANALYSIS_MODEL_ID = self._normalize_model_id(os.environ.get("ANALYSIS_MODEL") or self._cfg.get("openai", "analysis_model", fallback="gpt-4o"))

        # TTS Config
        self.TTS_MODEL_ID = self._normalize_model_id(os.environ.get("TTS_MODEL") or self._cfg.get("tts", "model", fallback="gpt-4o-mini-tts"))
        self.TTS_VOICE = os.environ.get("TTS_VOICE") or self._cfg.get("tts", "voice", fallback="coral")
        self.TTS_SAMPLE_RATE = int(os.environ.get("TTS_SAMPLE_RATE") or self._cfg.get("tts", "sample_rate", fallback="24000"))
        self.PLAYBACK_SPEEDS = (0.5, 0.7, 1.0, 1.2, 1.5)
        self.PLAYBACK_SPEED_DEFAULT = 1.0

        # Data Store
        self.DATA_DIR = os.environ.get("DATA_DIR") or self._cfg.get("store", "data_dir", fallback=root_path)
        self.LOCAL_STORE_PATH = os.path.join(self.DATA_DIR, "local_store.json")
        self.HISTORY_STORAGE_KEY = "latelier_history_v1"
        self.HISTORY_LIMIT = int(os.environ.get("HISTORY_LIMIT") or self._cfg.get("store", "history_limit", fallback="20"))

    def _normalize_model_id(self, mid):
        return re.sub(r"\s+", "", str(mid or "").strip())

    def as_flask_config(self):
        return {
            "SEND_FILE_MAX_AGE_DEFAULT": self.SEND_FILE_MAX_AGE_DEFAULT,
            "TEMPLATES_AUTO_RELOAD": self.TEMPLATES_AUTO_RELOAD,
        }

config = Config(os.getcwd())
