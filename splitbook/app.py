from __future__ import annotations

import logging
from dataclasses import replace
from typing import Any, Optional

from flask import Flask, jsonify, request
from flask_cors import CORS

from .config import config
from .db import StorageError, store
from .errors import DataIntegrityError, PayloadError
from .ledger import compute_group_debts
from .money import round_money
from .serializers import (
    group_debts_to_dict,
    member_view_to_dict,
    parse_settlement,
    parse_snapshot,
    settlement_to_dict,
)

FRIENDLY_FAILURE = "Balances could not be calculated for this group."


def create_app(settings=config, ledger_store=None) -> Flask:
    app = Flask(__name__)
    app.config["SETTLEMENT_TOLERANCE"] = settings.SETTLEMENT_TOLERANCE
    app.config["ROUNDING_QUANTUM"] = settings.ROUNDING_QUANTUM
    app.config["LEDGER_STORE"] = ledger_store if ledger_store is not None else store

    logging.getLogger("splitbook").setLevel(settings.LOG_LEVEL)
    app.logger.setLevel(settings.LOG_LEVEL)

    CORS(
        app,
        resources={r"/api/*": {"origins": settings.CORS_ORIGINS}},
    )

    register_error_handlers(app)
    register_routes(app)
    return app


def register_error_handlers(app: Flask) -> None:
    @app.errorhandler(PayloadError)
    def handle_payload_error(exc: PayloadError):
        return jsonify(exc.to_dict()), 400

    @app.errorhandler(DataIntegrityError)
    def handle_integrity_error(exc: DataIntegrityError):
        app.logger.warning("Data integrity fault on %s: %s", request.path, exc.message)
        body = exc.to_dict()
        body["message"] = FRIENDLY_FAILURE
        return jsonify(body), 409

    @app.errorhandler(StorageError)
    def handle_storage_error(exc: StorageError):
        app.logger.error("Storage error on %s: %s", request.path, exc)
        return jsonify({"error": "storage_unavailable"}), 503


def register_routes(app: Flask) -> None:
    def tolerance():
        return app.config["SETTLEMENT_TOLERANCE"]

    def quantum():
        return app.config["ROUNDING_QUANTUM"]

    def ledger_store():
        return app.config["LEDGER_STORE"]

    def load_group(group_id: int):
        snapshot = ledger_store().load_group(group_id)
        if snapshot is None:
            return None
        members, expenses, settlements = snapshot
        result = compute_group_debts(
            members, expenses, settlements, tolerance=tolerance(), quantum=quantum()
        )
        return members, result

    @app.get("/api/health")
    def health():
        return jsonify({"status": "ok"})

    @app.post("/api/balances/compute")
    def compute():
        payload = request.get_json(silent=True)
        members, expenses, settlements = parse_snapshot(payload)
        result = compute_group_debts(
            members, expenses, settlements, tolerance=tolerance(), quantum=quantum()
        )
        return jsonify(group_debts_to_dict(result, members, quantum()))

    @app.get("/api/groups/<int:group_id>/balances")
    def get_group_balances(group_id: int):
        loaded = load_group(group_id)
        if loaded is None:
            return jsonify({"error": "group_not_found"}), 404
        members, result = loaded

        body = group_debts_to_dict(result, members, quantum())
        member_id: Optional[int] = request.args.get("member_id", type=int)
        if member_id is not None:
            body.update(member_view_to_dict(result, members, member_id, quantum()))
        return jsonify(body)

    @app.post("/api/groups/<int:group_id>/settlements")
    def record_settlement(group_id: int):
        payload: Any = request.get_json(silent=True)
        if not isinstance(payload, dict):
            return jsonify({"error": "missing_fields"}), 400
        settlement = parse_settlement(payload)
        settlement = replace(settlement, amount=round_money(settlement.amount, quantum()))
        if settlement.amount <= 0:
            return jsonify({"error": "invalid_amount"}), 400

        loaded = load_group(group_id)
        if loaded is None:
            return jsonify({"error": "group_not_found"}), 404
        members, result = loaded

        directory = {member.member_id: member for member in members}
        if settlement.from_member_id not in directory or settlement.to_member_id not in directory:
            return jsonify({"error": "member_not_in_group"}), 400

        debt = result.debt_between(settlement.from_member_id, settlement.to_member_id)
        if debt is None:
            return jsonify({"error": "no_outstanding_debt"}), 400
        if settlement.amount > debt.amount:
            return jsonify({"error": "amount_exceeds_debt", "maximum": float(debt.amount)}), 400

        if settlement.description is None:
            settlement = replace(
                settlement,
                description="Settlement from {} to {}".format(
                    directory[settlement.from_member_id].name,
                    directory[settlement.to_member_id].name,
                ),
            )

        settlement_id = ledger_store().record_settlement(group_id, settlement)
        app.logger.info(
            "Recorded settlement %s in group %s: %s -> %s",
            settlement_id,
            group_id,
            settlement.from_member_id,
            settlement.to_member_id,
        )
        return jsonify(settlement_to_dict(settlement, settlement_id, quantum())), 201


app = create_app()


if __name__ == "__main__":
    app.run(debug=True)
