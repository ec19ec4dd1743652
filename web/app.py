from __future__ import annotations

from pathlib import Path
import sys
from typing import Any, Dict, Optional

from flask import Flask, jsonify, request
from pydantic import ValidationError

BASE_DIR = Path(__file__).resolve().parents[1]
if str(BASE_DIR) not in sys.path:
    sys.path.insert(0, str(BASE_DIR))

from core.science_data import describe_tables
from core.settings import DiagramSettings, configure_logging
from core.step_coordinator import evolution_state, resolve_turn
from generators.diagram_generator import RECIPES, generate_diagram_for_problem
from schemas.diagram import DiagramState, QuestionAnalysis
from validators.state_validator import validate_diagram


def _payload(diagram: Optional[DiagramState]) -> Optional[Dict[str, Any]]:
    return diagram.to_payload() if diagram is not None else None


def _bad_request(message: str, errors: Any = None):
    body: Dict[str, Any] = {"error": message}
    if errors is not None:
        body["details"] = errors
    return jsonify(body), 400


def create_app(settings: Optional[DiagramSettings] = None) -> Flask:
    settings = settings or DiagramSettings.from_env()
    app = Flask(__name__)
    app.config["DIAGRAM_SETTINGS"] = settings

    @app.route("/health", methods=["GET"])
    def health():
        return jsonify({
            "status": "ok",
            "categories": sorted(category.value for category in RECIPES),
            "tables": describe_tables(),
        })

    @app.route("/diagram", methods=["POST"])
    def diagram():
        body = request.get_json(silent=True)
        if not isinstance(body, dict):
            return _bad_request("Expected a JSON object describing the question.")
        analysis_body = body.get("analysis", body)
        try:
            analysis = QuestionAnalysis.model_validate(analysis_body)
        except ValidationError as exc:
            return _bad_request("Invalid question analysis.", exc.errors(include_url=False, include_context=False))

        result = generate_diagram_for_problem(analysis, settings)
        return jsonify({"diagram": _payload(result)})

    @app.route("/diagram/next", methods=["POST"])
    def next_turn():
        body = request.get_json(silent=True)
        if not isinstance(body, dict):
            return _bad_request("Expected a JSON object describing the turn.")

        analysis = None
        if body.get("analysis") is not None:
            try:
                analysis = QuestionAnalysis.model_validate(body["analysis"])
            except ValidationError as exc:
                return _bad_request("Invalid question analysis.", exc.errors(include_url=False, include_context=False))

        previous = validate_diagram(body["previous"]) if body.get("previous") is not None else None
        message = body.get("message") or ""
        if not isinstance(message, str):
            return _bad_request("message must be a string.")

        resolution = resolve_turn(previous, body.get("incoming"), message, analysis, settings)
        state = evolution_state(resolution.diagram)
        return jsonify({
            "diagram": _payload(resolution.diagram),
            "message": resolution.message,
            "stripAscii": resolution.strip_ascii,
            "source": resolution.source.value,
            "regressed": resolution.regressed,
            "phase": state.phase.value,
        })

    return app


app = create_app()


if __name__ == "__main__":
    configure_logging()
    app.run(debug=True, port=5000)
