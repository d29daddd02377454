import logging
from typing import Optional

from flask import Flask, jsonify, request
from flask_cors import CORS
from werkzeug.exceptions import RequestEntityTooLarge

from qr_composer import compose, normalize_options, to_data_url
from settings import Settings

logger = logging.getLogger(__name__)

CONTENT_REQUIRED_ERROR = "Content is required to generate a QR code."
INTERNAL_ERROR = "An internal error occurred while generating the QR code."
ORIGIN_REJECTED_ERROR = "Origin not allowed."
UPLOAD_TOO_LARGE_ERROR = "Uploaded file is too large."


def _request_fields() -> dict:
    """
    Text fields come from the multipart form; a JSON body is accepted for
    requests that carry no icon.
    """
    fields = request.form.to_dict()
    if fields:
        return fields
    payload = request.get_json(silent=True)
    return payload if isinstance(payload, dict) else {}


def create_app(settings: Optional[Settings] = None) -> Flask:
    settings = settings or Settings.from_env()

    app = Flask(__name__)
    app.config["MAX_CONTENT_LENGTH"] = settings.max_upload_bytes
    CORS(app, resources={r"/generate": {"origins": [settings.allowed_origin]}})

    @app.before_request
    def reject_foreign_origin():
        # Browsers send Origin on cross-site requests; other clients pass through.
        origin = request.headers.get("Origin")
        if origin and origin.rstrip("/") != settings.allowed_origin:
            logger.warning("Rejected request from origin %s", origin)
            return jsonify({"error": ORIGIN_REJECTED_ERROR}), 403
        return None

    @app.errorhandler(RequestEntityTooLarge)
    def upload_too_large(_exc):
        return jsonify({"error": UPLOAD_TOO_LARGE_ERROR}), 413

    @app.route("/health", methods=["GET"])
    def health_check():
        return jsonify({"status": "ok"}), 200

    @app.route("/generate", methods=["POST"])
    def generate():
        logger.info("Received a request to /generate.")
        fields = _request_fields()

        if not fields.get("content"):
            return jsonify({"error": CONTENT_REQUIRED_ERROR}), 400

        try:
            options = normalize_options(fields, max_size=settings.max_size)

            icon_bytes = None
            upload = request.files.get("icon")
            if upload and upload.filename:
                logger.info("Icon received: %s", upload.filename)
                icon_bytes = upload.read()

            qr_code_url = to_data_url(compose(options, icon_bytes))
        except Exception:
            logger.exception("Failed to generate QR code")
            return jsonify({"error": INTERNAL_ERROR}), 500

        return jsonify({"qrCodeUrl": qr_code_url}), 200

    return app


app = create_app()


def main() -> None:
    settings = Settings.from_env()
    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    logger.info("Server is running on http://localhost:%d", settings.port)
    create_app(settings).run(host=settings.host, port=settings.port)


if __name__ == "__main__":
    main()
