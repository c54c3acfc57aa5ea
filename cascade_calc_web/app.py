import logging
import os

from flask import Flask, jsonify, request

from cascade_calc.comparison import compare, compare_strategies
from cascade_calc.errors import SimulationError
from cascade_calc.main import comparison_to_dict

app = Flask(__name__)
app.config["DEFAULT_STRATEGY"] = os.environ.get("CASCADE_DEFAULT_STRATEGY", "avalanche")
app.config["LOG_LEVEL"] = os.environ.get("CASCADE_LOG_LEVEL", "INFO").upper()

logging.basicConfig(level=app.config["LOG_LEVEL"], format="%(levelname)s %(name)s: %(message)s")
logger = logging.getLogger(__name__)


def _flag(value, default: bool = True) -> bool:
    """Interpret a JSON or form toggle; strings like "false"/"0"/"off" are off."""
    if value is None:
        return default
    if isinstance(value, str):
        return value.strip().lower() not in {"", "0", "false", "off", "no"}
    return bool(value)


def _payload_to_kwargs(payload: dict) -> dict:
    """Pick the engine arguments out of a request body.

    Numeric values are passed through untouched; the engine normalizes them.
    """
    return {
        "loan_a": payload.get("loan_a") or {},
        "loan_b": payload.get("loan_b") or {},
        "extra_a": payload.get("extra_a", 0),
        "extra_b": payload.get("extra_b", 0),
        "redirect_scheduled": _flag(payload.get("redirect_scheduled")),
        "redirect_extra": _flag(payload.get("redirect_extra")),
    }


def _read_payload():
    payload = request.get_json(silent=True)
    if not isinstance(payload, dict):
        return None
    for key in ("loan_a", "loan_b"):
        if payload.get(key) is not None and not isinstance(payload[key], dict):
            return None
    return payload


def _error(message: str, status: int):
    return jsonify({"error": message}), status


@app.post("/api/compare")
def compare_endpoint():
    payload = _read_payload()
    if payload is None:
        return _error("Request body must be a JSON object", 400)
    strategy = payload.get("strategy") or app.config["DEFAULT_STRATEGY"]
    try:
        result = compare(strategy=strategy, **_payload_to_kwargs(payload))
    except ValueError as exc:
        return _error(str(exc), 400)
    except SimulationError:
        logger.exception("Cascade computation failed")
        return _error("Computation failed", 500)
    return jsonify(comparison_to_dict(result))


@app.post("/api/strategies")
def strategies_endpoint():
    payload = _read_payload()
    if payload is None:
        return _error("Request body must be a JSON object", 400)
    try:
        results = compare_strategies(**_payload_to_kwargs(payload))
    except SimulationError:
        logger.exception("Strategy comparison failed")
        return _error("Computation failed", 500)
    return jsonify({name: comparison_to_dict(result) for name, result in results.items()})


@app.get("/api/health")
def health():
    return jsonify({"status": "ok"})


if __name__ == "__main__":
    print("Starting cascade calculator API...")
    app.run(host="0.0.0.0", port=8710, debug=True)
