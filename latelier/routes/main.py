from flask import Blueprint, render_template, current_app
from latelier.models import ROLE_LABELS, ROLE_COLORS

main_bp = Blueprint('main', __name__)

@main_bp.route('/')
def index():
    state = current_app.extensions['latelier.state']
    # a fresh page has no audio element, so nothing can still be playing
    state.playback.stop()
    with state.lock:
        snapshot = state.snapshot()
        analysis = state.visible_analysis
    return render_template(
        'index.html',
        state=snapshot,
        analysis=analysis,
        history=state.history.items,
        role_labels={r.value: label for r, label in ROLE_LABELS.items()},
        role_colors={r.value: color for r, color in ROLE_COLORS.items()},
    )
