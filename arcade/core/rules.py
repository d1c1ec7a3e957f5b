"""
Contract every game engine implements.

Engines are stateless: a Position goes in, a new Position comes out. They never mutate their input,
which lets the sync layer compare / replace positions freely.
"""

from typing import Any, Iterable, Optional, Protocol

from arcade.core.models import Action, Terminal

Position = Any


class RuleEngine(Protocol):
    """The rules of one game"""

    def new_position(self, **options: Any) -> Position:
        """Deterministic starting position (card games take a `seed`)."""
        ...

    def legal_actions(self, position: Position) -> list[str]:
        """All legal move tokens for the seat on move (empty when nobody may act)."""
        ...

    def apply(self, position: Position, move: str) -> Position:
        """Return the position after `move`. Raises IllegalMoveError, leaving `position` untouched."""
        ...

    def terminal(self, position: Position) -> Terminal: ...

    def to_move(self, position: Position) -> Optional[int]:
        """Seat index that has to act next, None if nobody can act."""
        ...

    def move_count(self, position: Position) -> int: ...


def replay(engine: RuleEngine, position: Position, actions: Iterable[Action]) -> Position:
    """Fold `apply` over a sequence of logged actions (in log order)."""
    for action in actions:
        position = engine.apply(position, action.move)
    return position
