import logging
import time
import uuid

from pydantic import ValidationError

from latelier.errors import PersistedStateError
from latelier.models import HistoryItem

logger = logging.getLogger(__name__)


def new_history_item(original_text, analysis, now=None):
    ts = now if now is not None else time.time()
    return HistoryItem(
        id=uuid.uuid4().hex[:9],
        timestamp=int(ts * 1000),
        original_text=original_text,
        analysis=analysis,
    )


def parse_history(raw):
    """Turn the stored JSON value into history items, newest first.

    Entries that fail validation are dropped; a value that is not a list at all
    raises PersistedStateError.
    """
    if raw is None:
        return []
    if not isinstance(raw, list):
        raise PersistedStateError(f"expected a list, got {type(raw).__name__}")
    items = []
    for entry in raw:
        try:
            items.append(HistoryItem.model_validate(entry))
        except ValidationError as e:
            logger.warning("Skipping malformed history entry: %s", e.errors()[:1])
    return items


class HistoryStore:
    def __init__(self, data_service, key, limit=20):
        self.data_service = data_service
        self.key = key
        self.limit = limit
        self._items = []

    @property
    def items(self):
        return list(self._items)

    def get(self, item_id):
        for item in self._items:
            if item.id == item_id:
                return item
        return None

    def load(self):
        try:
            self._items = parse_history(self.data_service.get_item(self.key))[: self.limit]
        except PersistedStateError as e:
            logger.warning("Discarding stored history: %s", e)
            self._items = []
        return self.items

    def append(self, item):
        self._commit([item] + self._items[: self.limit - 1])
        return item

    def remove(self, item_id):
        items = [it for it in self._items if it.id != item_id]
        if len(items) == len(self._items):
            return False
        self._commit(items)
        return True

    def clear(self, confirmed=False):
        if not confirmed:
            return False
        self._commit([])
        return True

    def _commit(self, items):
        # in-memory list only changes once the write went through
        self.data_service.set_item(self.key, [it.to_json() for it in items])
        self._items = items
