from flask import Blueprint, request, jsonify

from routes.public import canonical_payload, error_response
from scheduling.blocks import create_block, delete_block, list_blocks, update_block
from scheduling.errors import BookingError, ValidationError
from utils.audit import log_event
from utils.auth_context import admin_required

admin_blocks_bp = Blueprint("admin_blocks", __name__, url_prefix="/api/admin/blocks")

BLOCK_ALIASES = {
    "window": "block_window",
    "date": "block_date",
}


def _payload() -> dict:
    return canonical_payload(request.get_json(silent=True) or {}, BLOCK_ALIASES)


def _target_id(data: dict, block_id):
    block_id = block_id if block_id is not None else data.get("id")
    if block_id in (None, ""):
        raise ValidationError("id is required")
    return block_id


@admin_blocks_bp.get("")
@admin_required
def get_blocks():
    try:
        blocks = list_blocks()
    except BookingError as e:
        return error_response(e)
    return jsonify(blocks=[b.to_dict() for b in blocks]), 200


@admin_blocks_bp.post("")
@admin_required
def add_block():
    data = _payload()
    try:
        block = create_block(
            data.get("block_date"),
            scope=data.get("scope") or "day",
            window=data.get("block_window"),
        )
    except BookingError as e:
        return error_response(e)

    log_event("BLOCK_CREATE", actor="admin", entity="block", entity_id=block.id,
              metadata={"block_date": block.block_date, "scope": block.scope})
    return jsonify(success=True, block=block.to_dict()), 201


@admin_blocks_bp.patch("")
@admin_blocks_bp.patch("/<block_id>")
@admin_required
def edit_block(block_id=None):
    data = _payload()
    try:
        block = update_block(
            _target_id(data, block_id),
            block_date=data.get("block_date"),
            scope=data.get("scope"),
            window=data.get("block_window"),
        )
    except BookingError as e:
        return error_response(e)

    log_event("BLOCK_UPDATE", actor="admin", entity="block", entity_id=block.id)
    return jsonify(success=True, block=block.to_dict()), 200


@admin_blocks_bp.delete("")
@admin_blocks_bp.delete("/<block_id>")
@admin_required
def remove_block(block_id=None):
    data = _payload()
    try:
        target = _target_id(data, block_id)
        delete_block(target)
    except BookingError as e:
        return error_response(e)

    log_event("BLOCK_DELETE", actor="admin", entity="block", entity_id=target)
    return jsonify(success=True), 200
