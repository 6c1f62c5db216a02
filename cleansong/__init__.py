"""
CleanSong Relay Application Factory
"""
import os
from datetime import datetime, timezone

from flask import Flask, jsonify, send_from_directory

from config import config
from cleansong.services.freeconvert_service import FreeConvertCompressor, FreeConvertSettings
from cleansong.services.space_service import LyricCleaner, SpaceSettings


def _error(kind: str, message: str, status: int):
    return jsonify({"error": message, "kind": kind}), status


def create_app(config_name="default", compressor_factory=None, cleaner_factory=None):
    cfg = config.get(config_name, config["default"])
    app = Flask(__name__, static_folder=os.path.abspath(cfg.STATIC_FOLDER))
    app.config.from_object(cfg)

    app.logger.setLevel(app.config["LOG_LEVEL"])

    # Credentials are read once here; request handlers only see these objects
    freeconvert = FreeConvertSettings.from_config(app.config)
    space = SpaceSettings.from_config(app.config)
    if not freeconvert.ready:
        app.logger.warning("FREECONVERT_API_KEY is not set; /api/compress will fail")

    app.extensions["cleansong"] = {
        "freeconvert": freeconvert,
        "space": space,
        "compressor_factory": compressor_factory or FreeConvertCompressor,
        "cleaner_factory": cleaner_factory or LyricCleaner,
    }

    from cleansong.api import api_bp
    app.register_blueprint(api_bp)

    @app.errorhandler(405)
    def method_not_allowed(e):
        return _error("MethodNotAllowed", "Method not allowed", 405)

    @app.errorhandler(413)
    def payload_too_large(e):
        app.logger.info("Payload too large: %s", e)
        return _error(
            "PayloadTooLarge",
            "File too large. Please try with a smaller audio file or ensure compression is working.",
            413,
        )

    @app.route("/")
    def index():
        if os.path.isfile(os.path.join(app.static_folder, "index.html")):
            return send_from_directory(app.static_folder, "index.html")
        return jsonify({"service": "cleansong-relay", "version": app.config["APP_VERSION"]})

    # Health check endpoint
    @app.route("/healthz")
    def healthz():
        """Health check for load balancers and monitoring"""
        return jsonify({
            "status": "ok",
            "version": app.config["APP_VERSION"],
            "freeconvert_ready": freeconvert.ready,
            "space_id": space.space_id,
            "timestamp": datetime.now(timezone.utc).isoformat(),
        })

    # Version endpoint
    @app.route("/version")
    def version():
        """Version and build info"""
        return jsonify({
            "version": app.config["APP_VERSION"],
            "build_time": app.config["BUILD_TIME"],
            "git_commit": app.config["GIT_COMMIT"],
            "features": {
                "compress": True,
                "lyric_cleaner": True,
            }
        })

    return app
