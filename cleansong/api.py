"""
API Blueprint - audio relay endpoints

- POST /api/compress: shrink audio through a FreeConvert job
- POST /api/process:  run audio through the Lyric-Cleaner Space
"""
from functools import wraps
from typing import Any, Dict, Tuple

from flask import Blueprint, current_app, jsonify, request
from werkzeug.exceptions import HTTPException

from cleansong.errors import InputError, InternalError, RelayError
from cleansong.utils.data_url import input_format, parse_data_url, to_data_url

api_bp = Blueprint("api", __name__, url_prefix="/api")


def relay_errors(f):
    """Turn every failure into a structured JSON error response"""
    @wraps(f)
    def decorated_function(*args, **kwargs):
        limit = current_app.config.get("ERROR_DETAILS_LIMIT", 2000)
        try:
            return f(*args, **kwargs)
        except RelayError as e:
            current_app.logger.warning("%s %s: %s", request.path, e.kind, e.message)
            return jsonify(e.to_dict(limit)), e.status_code
        except HTTPException:
            # 413 and friends have their own app-level handlers
            raise
        except Exception as e:
            current_app.logger.exception("%s error", request.path)
            err = InternalError(str(e) or "Internal Server Error")
            return jsonify(err.to_dict(limit)), err.status_code
    return decorated_function


def services() -> Dict[str, Any]:
    return current_app.extensions["cleansong"]


def read_audio_payload() -> Tuple[Dict[str, Any], str, bytes]:
    payload = request.get_json(silent=True)
    if not isinstance(payload, dict):
        raise InputError("Request body must be a JSON object")
    if not payload.get("file"):
        raise InputError("No file provided")
    mime, data = parse_data_url(payload["file"])
    return payload, mime, data


@api_bp.route("/compress", methods=["POST"])
@relay_errors
def compress():
    payload, mime, data = read_audio_payload()
    file_type = payload.get("fileType")
    if file_type is not None and not isinstance(file_type, str):
        raise InputError("fileType must be a MIME type string", details=repr(file_type))
    fmt = input_format(file_type or mime)

    svc = services()
    compressor = svc["compressor_factory"](svc["freeconvert"])
    current_app.logger.info("Compressing %d bytes of %s audio", len(data), fmt)
    out = compressor.compress(data, fmt)

    out_mime = f"audio/{svc['freeconvert'].output_format}"
    return jsonify({"file": to_data_url(out, out_mime)}), 200


@api_bp.route("/process", methods=["POST"])
@relay_errors
def process():
    _, mime, data = read_audio_payload()

    svc = services()
    cleaner = svc["cleaner_factory"](svc["space"])
    suffix = f".{input_format(mime)}" if mime else ".wav"
    result = cleaner.process(data, suffix=suffix)
    return jsonify(result), 200
