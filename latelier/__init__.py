from flask import Flask, jsonify, request
from latelier.config import config as default_config
from latelier.services.data_service import DataService
from latelier.services.history_service import HistoryStore
from latelier.services.ai_service import AnalysisClient
from latelier.services.speech_service import SpeechClient, PlaybackController
from latelier.state import AppState
from latelier.utils.helpers import _format_history_date, _excerpt
import logging
from logging.handlers import RotatingFileHandler
import os

def _configure_logging(app, cfg):
    # app.logger is the "latelier" logger, so service module loggers propagate to it
    os.makedirs(cfg.LOG_DIR, exist_ok=True)
    log_path = os.path.abspath(os.path.join(cfg.LOG_DIR, 'app.log'))
    for h in app.logger.handlers:
        if isinstance(h, RotatingFileHandler) and h.baseFilename == log_path:
            return
    file_handler = RotatingFileHandler(log_path, maxBytes=10240, backupCount=10)
    file_handler.setFormatter(logging.Formatter(
        '%(asctime)s %(levelname)s: %(message)s [in %(pathname)s:%(lineno)d]'
    ))
    file_handler.setLevel(logging.INFO)
    app.logger.addHandler(file_handler)
    app.logger.setLevel(logging.INFO)

def create_app(cfg=None, analysis_client=None, speech_client=None, testing=False):
    cfg = cfg or default_config
    base_dir = os.path.abspath(os.path.dirname(__file__))
    app = Flask(__name__,
                template_folder=os.path.join(base_dir, 'templates'),
                static_folder=os.path.join(base_dir, 'static'))
    app.config.update(cfg.as_flask_config())
    app.config['TESTING'] = testing
    app.json.ensure_ascii = False

    _configure_logging(app, cfg)
    app.logger.info("L'Atelier du Journal startup")

    # Services and state
    history = HistoryStore(DataService(cfg.LOCAL_STORE_PATH), cfg.HISTORY_STORAGE_KEY, limit=cfg.HISTORY_LIMIT)
    history.load()
    speech = speech_client or SpeechClient.from_config(cfg)
    state = AppState(history, PlaybackController(speech), speeds=cfg.PLAYBACK_SPEEDS, default_speed=cfg.PLAYBACK_SPEED_DEFAULT)
    app.extensions['latelier.state'] = state
    app.extensions['latelier.analysis'] = analysis_client or AnalysisClient.from_config(cfg)
    app.extensions['latelier.config'] = cfg

    # Register Blueprints
    from latelier.routes.main import main_bp
    from latelier.routes.api import api_bp

    app.register_blueprint(main_bp)
    app.register_blueprint(api_bp)

    # Error Handlers
    @app.errorhandler(404)
    def not_found(e):
        if request.path.startswith('/api/'):
            return jsonify({"error": "not_found"}), 404
        return "Not Found", 404

    @app.errorhandler(500)
    def internal_error(e):
        app.logger.error(f'Server Error: {e}')
        if request.path.startswith('/api/'):
            return jsonify({"error": "internal_error"}), 500
        return "Internal Server Error", 500

    app.add_template_filter(_format_history_date, 'history_date')
    app.add_template_filter(_excerpt, 'excerpt')

    return app
