#!/usr/bin/env python3
"""
Zonk Web — Flask JSON adapter that plays opponent turns for a game host.

The host owns the game (scores, rounds, the human player's dice). It posts the
current state to /turn and gets back the opponent's full event stream, which
it can replay at its own pace.
"""
import logging
import random

from flask import Flask, jsonify, request

from ai import TurnContext, run_turn
from ai_config import AIConfiguration, BehaviorMode, ConfigurationError, get_preset

logger = logging.getLogger(__name__)

app = Flask(__name__)


class BadRequest(ValueError):
    """Raised for request bodies the adapter cannot turn into a TurnContext."""


def _int_field(data, name, default=0):
    value = data.get(name, default)
    if isinstance(value, bool) or not isinstance(value, int):
        raise BadRequest(f"{name} must be an integer")
    return value


def _mode_field(data):
    value = data.get("previous_mode", BehaviorMode.PASSIVE.value)
    try:
        return BehaviorMode(value)
    except ValueError:
        raise BadRequest(f"previous_mode must be one of "
                         f"{[m.value for m in BehaviorMode]}") from None


def _build_config(data):
    """Preset named in the request, with any "config" overrides layered on top."""
    name = data.get("preset", "medium")
    if not isinstance(name, str):
        raise BadRequest("preset must be a string")
    config = get_preset(name)
    overrides = data.get("config")
    if overrides is None:
        return config
    if not isinstance(overrides, dict):
        raise BadRequest("config must be an object")
    return AIConfiguration.from_dict(overrides, base=config)


def _build_context(data):
    if not isinstance(data, dict):
        raise BadRequest("request body must be a JSON object")
    completed_rounds = _int_field(data, "completed_rounds")
    if completed_rounds < 0:
        raise BadRequest("completed_rounds must not be negative")
    return TurnContext(
        opponent_score=_int_field(data, "opponent_score"),
        rival_score=_int_field(data, "rival_score"),
        completed_rounds=completed_rounds,
        config=_build_config(data),
        previous_mode=_mode_field(data),
    )


def _error(message, status=400):
    return jsonify({"error": message}), status


@app.route("/config")
def config():
    """Configuration of a preset as JSON."""
    name = request.args.get("preset", "medium")
    try:
        preset = get_preset(name)
    except ConfigurationError as e:
        logger.warning("Bad /config request: %s", e)
        return _error(str(e))
    return jsonify({"preset": name, "config": preset.to_dict()})


@app.route("/turn", methods=["POST"])
def turn():
    """Play one opponent turn and return the TurnResult as JSON."""
    data = request.get_json(silent=True)
    if data is None:
        logger.warning("Bad /turn request: body is not JSON")
        return _error("request body must be JSON")

    try:
        context = _build_context(data)
        seed = data.get("seed")
        if seed is not None and (isinstance(seed, bool) or not isinstance(seed, int)):
            raise BadRequest("seed must be an integer")
    except (BadRequest, ConfigurationError) as e:
        logger.warning("Bad /turn request: %s", e)
        return _error(str(e))

    rng = random.Random(seed)
    try:
        result = run_turn(context, rng=rng)
    except Exception:
        logger.error("Opponent turn failed for %r", data, exc_info=True)
        return _error("internal error", status=500)

    payload = result.to_dict()
    payload["seed"] = seed
    return jsonify(payload)


def main():
    """Entry point for the web server."""
    import argparse
    parser = argparse.ArgumentParser(description="Zonk Opponent Web Server")
    parser.add_argument("--host", default="127.0.0.1", help="Host to bind (default: 127.0.0.1)")
    parser.add_argument("--port", type=int, default=5000, help="Port (default: 5000)")
    parser.add_argument("--debug", action="store_true", help="Enable debug mode")
    args = parser.parse_args()

    if args.debug:
        logging.basicConfig(level=logging.DEBUG)

    print(f"Starting Zonk opponent server at http://{args.host}:{args.port}")
    app.run(host=args.host, port=args.port, debug=args.debug)


if __name__ == "__main__":
    main()
