import logging

from auth import Authenticator
from cipher import TemplateCipher
from config import (
    DATA_FILE,
    TEMPLATE_SECRET,
    Tolerance,
    get_public_config,
)
from errors import (
    AccountLockedError,
    GestureAuthError,
    InputShapeError,
    SuspectedSpoofingError,
    TemplateCorruptError,
    TemplateExistsError,
    TemplateNotFoundError,
)
from flask import Flask, jsonify, request
from gestures import GestureSample
from logger_setup import setup_logging
from users import JsonFileStore

setup_logging()
logger = logging.getLogger(__name__)

app = Flask(__name__)

# Replaced in tests (or by an embedding application) with another store
authenticator = Authenticator(JsonFileStore(DATA_FILE), cipher=TemplateCipher(TEMPLATE_SECRET))

ERROR_STATUS = {
    InputShapeError: 400,
    ValueError: 400,
    SuspectedSpoofingError: 403,
    TemplateNotFoundError: 404,
    TemplateExistsError: 409,
    AccountLockedError: 423,
    TemplateCorruptError: 500,
}


@app.errorhandler(GestureAuthError)
def handle_gesture_error(error):
    status = 500
    for error_type, code in ERROR_STATUS.items():
        if isinstance(error, error_type):
            status = code
            break

    body = {"success": False, "error": str(error), "reason": error.reason}
    if isinstance(error, AccountLockedError):
        body["lockUntil"] = error.lock_until
    if isinstance(error, SuspectedSpoofingError):
        body["findings"] = [f.to_dict() for f in error.findings]
    if isinstance(error, TemplateCorruptError):
        # Details stay in the server log
        body["error"] = "Stored gesture could not be read"
    return jsonify(body), status


def _read_request():
    """Pull identity and gesture sample out of the JSON body"""
    data = request.get_json(silent=True) or {}
    identity = data.get("identity")
    if not identity:
        raise InputShapeError("identity required")
    if "gestureData" not in data:
        raise InputShapeError("gestureData required")
    return data, identity, GestureSample.from_dict(data["gestureData"])


@app.route("/api/config")
def get_config():
    """API endpoint to provide client configuration"""
    return jsonify(get_public_config())


@app.route("/gestures/register", methods=["POST"])
def register():
    """
    Register the gesture for an identity.
    Expected JSON: {
        'identity': str,
        'gestureData': {'positions': [{'x', 'y', 'z'}, ...], 'timing': [ms, ...]},
        'name': str (optional),
        'tolerance': {'position': float, 'timing': float} (optional)
    }
    """
    data, identity, sample = _read_request()
    tolerance = Tolerance.from_dict(data.get("tolerance"))
    summary = authenticator.register_template(
        identity, sample, name=data.get("name"), tolerance=tolerance
    )
    return jsonify(
        {
            "success": True,
            "message": "Gesture registered successfully",
            "data": {"gesture": summary.to_dict()},
        }
    ), 201


@app.route("/gestures/validate", methods=["POST"])
def validate():
    """Gesture login attempt for an identity."""
    _, identity, sample = _read_request()
    result = authenticator.validate_live(identity, sample)
    return jsonify(
        {
            "success": True,
            "data": {
                "isValid": result.success,
                **result.to_dict(),
                "message": "Gesture validated successfully"
                if result.success
                else "Gesture validation failed",
            },
        }
    ), 200


@app.route("/gestures/update", methods=["PUT"])
def update():
    data, identity, sample = _read_request()
    summary = authenticator.update_template(identity, sample, name=data.get("name"))
    return jsonify(
        {
            "success": True,
            "message": "Gesture updated successfully",
            "data": {"gesture": summary.to_dict()},
        }
    ), 200


@app.route("/gestures/analyze", methods=["POST"])
def analyze():
    """Security insights for a candidate gesture; nothing is stored."""
    data = request.get_json(silent=True) or {}
    sample = GestureSample.from_dict(data.get("gestureData"))
    analysis = authenticator.analyze_for_insights(sample)
    return jsonify({"success": True, "data": {"analysis": analysis}}), 200


@app.route("/gestures/profile/<identity>")
def profile(identity):
    summary = authenticator.get_profile(identity)
    return jsonify({"success": True, "data": {"gesture": summary.to_dict()}}), 200


@app.route("/gestures/<identity>", methods=["DELETE"])
def delete(identity):
    authenticator.delete_template(identity)
    return jsonify({"success": True, "message": "Gesture deleted successfully"}), 200


if __name__ == "__main__":
    app.run(debug=False, host="0.0.0.0", port=5000)
