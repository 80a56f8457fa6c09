import json
import logging
import os
import threading

logger = logging.getLogger(__name__)

class DataService:
    """Key/value JSON file standing in for the browser's local storage.

    Each key maps to a JSON value; every write rewrites the whole file.
    """

    def __init__(self, path):
        self.path = path
        self._locks = {}
        self._global_lock = threading.Lock()

    def _get_lock(self, path):
        with self._global_lock:
            if path not in self._locks:
                self._locks[path] = threading.Lock()
            return self._locks[path]

    def _load_json(self, path, default=None):
        lock = self._get_lock(path)
        with lock:
            if not os.path.exists(path):
                return default if default is not None else {}
            with open(path, "r", encoding="utf-8") as f:
                return json.load(f)

    def _save_json(self, path, data):
        lock = self._get_lock(path)
        with lock:
            folder = os.path.dirname(path)
            if folder:
                os.makedirs(folder, exist_ok=True)
            tmp_path = path + ".tmp"
            with open(tmp_path, "w", encoding="utf-8") as f:
                json.dump(data, f, ensure_ascii=False, indent=2)
            os.replace(tmp_path, path)

    def _load_store(self):
        try:
            data = self._load_json(self.path, default={})
        except (OSError, ValueError) as e:
            logger.warning("Local store %s unreadable, starting empty: %s", self.path, e)
            return {}
        if isinstance(data, dict):
            return data
        return {}

    def get_item(self, key, default=None):
        return self._load_store().get(key, default)

    def set_item(self, key, value):
        store = self._load_store()
        store[key] = value
        self._save_json(self.path, store)

