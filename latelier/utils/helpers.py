from datetime import datetime

_FR_MONTHS = ["janv.", "févr.", "mars", "avr.", "mai", "juin",
              "juil.", "août", "sept.", "oct.", "nov.", "déc."]

def _format_history_date(ts_ms):
    """Epoch milliseconds -> "19 oct., 14:30" in local time."""
    try:
        d = datetime.fromtimestamp(int(ts_ms) / 1000.0)
    except (TypeError, ValueError, OverflowError, OSError):
        return ""
    return f"{d.day} {_FR_MONTHS[d.month - 1]}, {d.strftime('%H:%M')}"

def _excerpt(text, limit=140):
    text = " ".join((text or "").split())
    if len(text) > limit:
        return text[:limit - 1].rstrip() + "…"
    return text

def _parse_speed(value):
    try:
        return float(value)
    except (TypeError, ValueError):
        return None

def _parse_index(value):
    if value is None:
        return None
    if isinstance(value, bool):
        raise ValueError("index must be an integer")
    if isinstance(value, int):
        return value
    s = str(value).strip()
    if not s.lstrip("-").isdigit():
        raise ValueError("index must be an integer")
    return int(s)
