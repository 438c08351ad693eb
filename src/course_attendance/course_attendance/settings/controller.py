from __future__ import annotations

from flask import Flask, jsonify, request

from ..attendance.controller import json_errors
from ..core.exceptions import ValidationError
from ..container import Container


def register(app: Flask, container: Container) -> None:
    @app.route("/api/settings", methods=["GET"], endpoint="settings_list")
    @json_errors
    def settings_list():
        return jsonify([s.to_dict() for s in container.settings_service.list_all()])

    @app.route("/api/settings/<key>", methods=["GET"], endpoint="settings_get")
    @json_errors
    def settings_get(key: str):
        return jsonify(container.settings_service.get(key).to_dict())

    @app.route("/api/settings/<key>", methods=["PUT"], endpoint="settings_update")
    @json_errors
    def settings_update(key: str):
        data = request.get_json(silent=True) or {}
        if "value" not in data:
            raise ValidationError("Value is required")
        setting = container.settings_service.update(key, data["value"], data.get("description"))
        return jsonify(setting.to_dict())
