import requests
import json
import sys

BASE = "http://127.0.0.1:7860"

def get_json(path):
    r = requests.get(BASE + path, timeout=10)
    try:
        return r.status_code, r.json()
    except Exception:
        return r.status_code, {"text": r.text}

def post_json(path, data, timeout=20):
    r = requests.post(BASE + path, headers={"Content-Type": "application/json"}, data=json.dumps(data), timeout=timeout)
    try:
        return r.status_code, r.json()
    except Exception:
        return r.status_code, {"text": r.text}

def main():
    code, meta = get_json("/api/meta")
    print("meta", code, bool(meta.get("routes")), "key" if meta.get("api_key_configured") else "no-key")
    code, state = get_json("/api/state")
    print("state", code, state.get("status"), len(state.get("history", [])))
    code, speed = post_json("/api/speed", {"speed": 1.2})
    print("speed", code, speed.get("playback_speed"))
    if not meta.get("api_key_configured"):
        print("analyze", "skip")
        return
    code, res = post_json("/api/analyze", {"text": "我今天去咖啡店看书。"}, timeout=180)
    analysis = (res.get("state") or {}).get("analysis") or {}
    print("analyze", code, bool(analysis.get("translatedText")), (res.get("state") or {}).get("segments_consistent"))
    if code == 200:
        code, tts = post_json("/api/speech", {"text": analysis.get("translatedText", "")}, timeout=60)
        audio = tts.get("audio") or {}
        print("speech", code, len(audio.get("b64", "")) > 10, (tts.get("playback") or {}).get("phase"))
        post_json("/api/speech/ended", {"text": analysis.get("translatedText", "")})

if __name__ == "__main__":
    try:
        main()
        sys.exit(0)
    except Exception as e:
        print("error", str(e))
        sys.exit(1)
