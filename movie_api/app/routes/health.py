"""routes/health.py — GET /health: process is up and the database answers."""

from __future__ import annotations

import logging

from flask import Blueprint, jsonify
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from movie_api.app.extensions import db

health_bp = Blueprint("health", __name__)

logger = logging.getLogger(__name__)


@health_bp.route("/health", methods=["GET"])
def health():
    try:
        db.session.execute(text("SELECT 1"))
    except SQLAlchemyError:
        logger.exception("health check: database unreachable")
        return jsonify({"status": "Unhealthy"}), 503
    return jsonify({"status": "Healthy"}), 200
