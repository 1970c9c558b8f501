import re
from typing import List, Optional

from sqlalchemy.exc import SQLAlchemyError

from models import db
from models.block import BLOCK_SCOPES, Block

from .availability import WINDOW_SEPARATOR
from .errors import NotFoundError, StoreError, ValidationError
from .timeutils import normalize_date_id, normalize_time

# Accepts en-dash or plain hyphen between the two endpoints
_WINDOW_INPUT_RE = re.compile(r"^\s*(\d{1,2}:\d{2})\s*[–-]\s*(\d{1,2}:\d{2})\s*$")


def normalize_window(window: Optional[str]) -> Optional[str]:
    """"8:00 - 9:30" -> "08:00–09:30"; None/blank -> None; malformed -> ValidationError."""
    if window is None or not str(window).strip():
        return None
    match = _WINDOW_INPUT_RE.match(str(window))
    if not match:
        raise ValidationError("Invalid window. Use HH:MM–HH:MM")
    start, end = normalize_time(match.group(1)), normalize_time(match.group(2))
    if start >= end:
        raise ValidationError("Window end must be after start")
    return f"{start}{WINDOW_SEPARATOR}{end}"


def _clean_date_expr(expr) -> str:
    expr = str(expr or "").strip()
    if not expr:
        raise ValidationError("date is required")
    if not normalize_date_id(expr):
        raise ValidationError("date must contain at least one YYYY-MM-DD")
    return expr


def _clean_scope(scope) -> str:
    scope = str(scope or "day").strip().lower()
    if scope not in BLOCK_SCOPES:
        raise ValidationError("scope must be one of: " + ", ".join(BLOCK_SCOPES))
    return scope


def _validate(scope: str, window: Optional[str]) -> Optional[str]:
    window = normalize_window(window)
    if scope == "slot" and window is None:
        raise ValidationError("slot blocks need a time window")
    return window


def _commit():
    try:
        db.session.commit()
    except SQLAlchemyError as exc:
        db.session.rollback()
        raise StoreError("Could not save block") from exc


def get_block(block_id) -> Block:
    try:
        block = db.session.get(Block, int(block_id))
    except (TypeError, ValueError):
        raise NotFoundError("Block not found")
    except SQLAlchemyError as exc:
        raise StoreError("Could not load block") from exc
    if block is None:
        raise NotFoundError("Block not found")
    return block


def list_blocks() -> List[Block]:
    try:
        return Block.query.order_by(Block.block_date.asc(), Block.id.asc()).all()
    except SQLAlchemyError as exc:
        raise StoreError("Could not load blocks") from exc


def create_block(block_date, scope="day", window=None) -> Block:
    block_date = _clean_date_expr(block_date)
    scope = _clean_scope(scope)
    window = _validate(scope, window)

    block = Block(block_date=block_date, scope=scope, block_window=window)
    db.session.add(block)
    _commit()
    return block


def update_block(block_id, block_date=None, scope=None, window=None) -> Block:
    """Changes only the fields given; the result must still be a valid block."""
    block = get_block(block_id)

    new_date = _clean_date_expr(block_date) if block_date is not None else block.block_date
    new_scope = _clean_scope(scope) if scope is not None else block.scope
    new_window = _validate(new_scope, window if window is not None else block.block_window)

    block.block_date = new_date
    block.scope = new_scope
    block.block_window = new_window
    _commit()
    return block


def delete_block(block_id) -> None:
    block = get_block(block_id)
    db.session.delete(block)
    _commit()
