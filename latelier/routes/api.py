from flask import Blueprint, request, jsonify, current_app
import base64
from latelier.errors import AnalysisServiceError, SpeechServiceError, SubmissionRejected
from latelier.utils.helpers import _parse_speed, _parse_index

api_bp = Blueprint('api', __name__, url_prefix='/api')

def _state():
    return current_app.extensions['latelier.state']

@api_bp.route('/meta')
def meta():
    cfg = current_app.extensions['latelier.config']
    return jsonify({
        "debug": current_app.debug,
        "analysis_model": cfg.ANALYSIS_MODEL_ID,
        "tts_model": cfg.TTS_MODEL_ID,
        "tts_voice": cfg.TTS_VOICE,
        "api_key_configured": bool(cfg.OPENAI_API_KEY),
        "history_limit": cfg.HISTORY_LIMIT,
        "routes": sorted([str(r) for r in current_app.url_map.iter_rules()]),
    })

@api_bp.route('/state')
def get_state():
    return jsonify(_state().snapshot())

@api_bp.route('/text', methods=['POST'])
def edit_text():
    data = request.json or {}
    _state().edit_text(str(data.get("text") or ""))
    return jsonify(_state().snapshot())

@api_bp.route('/analyze', methods=['POST'])
def analyze():
    state = _state()
    data = request.get_json(silent=True) or {}
    if "text" in data:
        state.edit_text(str(data.get("text") or ""))
    try:
        item = state.submit(current_app.extensions['latelier.analysis'])
    except SubmissionRejected as e:
        return jsonify({"error": str(e), "state": state.snapshot()}), e.status_code
    except AnalysisServiceError as e:
        current_app.logger.warning(f"Analysis failed: {e}")
        return jsonify({"error": str(e), "state": state.snapshot()}), 502
    return jsonify({"ok": True, "id": item.id, "state": state.snapshot()})

@api_bp.route('/history')
def history_list():
    return jsonify({"items": [it.to_json() for it in _state().history.items]})

@api_bp.route('/history/<item_id>/select', methods=['POST'])
def history_select(item_id):
    if _state().select_history(item_id) is None:
        return jsonify({"error": "not_found"}), 404
    return jsonify(_state().snapshot())

@api_bp.route('/history/<item_id>', methods=['DELETE'])
def history_delete(item_id):
    if not _state().delete_history(item_id):
        return jsonify({"error": "not_found"}), 404
    return jsonify({"ok": True, "deleted_id": item_id, "state": _state().snapshot()})

@api_bp.route('/history/clear', methods=['POST'])
def history_clear():
    data = request.get_json(silent=True) or {}
    if data.get("confirm") is not True:
        return jsonify({"error": "confirmation_required", "state": _state().snapshot()}), 400
    _state().clear_history(confirmed=True)
    return jsonify({"ok": True, "state": _state().snapshot()})

@api_bp.route('/segment', methods=['POST'])
def segment():
    data = request.get_json(silent=True) or {}
    try:
        index = _parse_index(data.get("index"))
    except ValueError as e:
        return jsonify({"error": str(e)}), 400
    if index is None:
        _state().close_segment()
    else:
        try:
            _state().toggle_segment(index)
        except IndexError as e:
            return jsonify({"error": str(e)}), 400
    return jsonify(_state().snapshot())

@api_bp.route('/speed', methods=['POST'])
def speed():
    data = request.get_json(silent=True) or {}
    value = _parse_speed(data.get("speed"))
    try:
        if value is None:
            raise ValueError("missing speed")
        _state().set_speed(value)
    except ValueError as e:
        return jsonify({"error": str(e)}), 400
    return jsonify(_state().snapshot())

@api_bp.route('/speech', methods=['POST'])
def speech():
    data = request.get_json(silent=True) or {}
    text = str(data.get("text") or "").strip()
    if not text:
        return jsonify({"error": "missing text"}), 400
    state = _state()
    try:
        playback = state.speak(text)
    except SpeechServiceError as e:
        current_app.logger.warning(f"Speech failed: {e}")
        return jsonify({"error": f"Erreur de synthèse vocale: {e}", "playback": state.playback.snapshot()}), 502
    audio = None
    if playback is not None:
        audio = {
            "b64": base64.b64encode(playback.clip.to_wav()).decode("ascii"),
            "mime": "audio/wav",
            "rate": playback.rate,
            "sample_rate": playback.clip.sample_rate,
            "duration": playback.clip.duration,
        }
    return jsonify({"playback": state.playback.snapshot(), "audio": audio})

@api_bp.route('/speech/ended', methods=['POST'])
def speech_ended():
    data = request.get_json(silent=True) or {}
    text = str(data.get("text") or "").strip()
    stopped = _state().playback.finished(text)
    return jsonify({"ok": True, "stopped": stopped, "playback": _state().playback.snapshot()})

@api_bp.route('/speech/stop', methods=['POST'])
def speech_stop():
    # body may be a sendBeacon payload, so it is not parsed
    _state().playback.stop()
    return jsonify({"ok": True, "playback": _state().playback.snapshot()})
