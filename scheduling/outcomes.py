from dataclasses import asdict, dataclass
from typing import List, Optional


@dataclass
class SideEffect:
    """Result of one best-effort external call (calendar or email)."""

    name: str
    ok: bool
    detail: Optional[str] = None

    def to_dict(self) -> dict:
        return asdict(self)


def side_effects_dict(effects: List[SideEffect]) -> dict:
    return {effect.name: effect.to_dict() for effect in effects}
