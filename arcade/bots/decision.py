"""
Bot decisions.

The bot asks the suggestion service first, checks the answer against the rule engine and
falls back to a local policy whenever the answer is missing or unusable:
* chess / poker: uniformly random legal action (seeded, so tests are deterministic)
* blackjack: hit below 17, stand otherwise (this is also the primary policy of bot seats)
"""

import asyncio
import logging
import random
from dataclasses import dataclass
from enum import StrEnum
from typing import Any, Optional

from arcade.blackjack.game import BlackjackPosition
from arcade.blackjack.hand import bot_should_hit
from arcade.bots.prompts import (
    TEMPERATURE,
    Difficulty,
    blackjack_prompt,
    chess_prompt,
    poker_prompt,
)
from arcade.bots.suggestion import NullSuggestionClient, SuggestionClient
from arcade.chess import notation
from arcade.core.exceptions import GameStateError, IllegalMoveError, SuggestionError
from arcade.core.shared_types import GameKind
from arcade.engines import engine_for

logger = logging.getLogger(__name__)


class DecisionSource(StrEnum):
    SUGGESTION = "suggestion"
    FALLBACK = "fallback"


@dataclass(frozen=True)
class BotDecision:
    move: str
    source: DecisionSource
    explanation: str = ""


class BotDecisionClient:
    def __init__(
        self,
        suggestions: Optional[SuggestionClient] = None,
        difficulty: Difficulty = Difficulty.MEDIUM,
        seed: Optional[int] = None,
        think_delay: float = 0.0,
    ) -> None:
        self.suggestions = suggestions or NullSuggestionClient()
        self.difficulty = difficulty
        self.rng = random.Random(seed)
        self.think_delay = think_delay

    async def think(self) -> None:
        """Artificial pause so bot moves do not land instantly."""
        if self.think_delay > 0:
            await asyncio.sleep(self.think_delay)

    async def decide(self, kind: GameKind, position: Any) -> BotDecision:
        engine = engine_for(kind)
        legal = engine.legal_actions(position)
        if not legal:
            raise GameStateError(f"Bot asked to move in a {kind} position without legal actions.")

        if self.difficulty == Difficulty.EASY:
            return self._fallback(kind, position, legal, "easy difficulty")

        try:
            reply = await self.suggestions.suggest(
                self._prompt(kind, position), temperature=TEMPERATURE[self.difficulty]
            )
        except SuggestionError as exc:
            logger.info("Bot suggestion unavailable (%s), using fallback", exc)
            return self._fallback(kind, position, legal, "suggestion unavailable")

        move = self._match(kind, position, legal, reply)
        if move is None:
            logger.info("Bot suggestion %r is not a legal move, using fallback", reply)
            return self._fallback(kind, position, legal, f"suggestion {reply.strip()!r} rejected")
        return BotDecision(move, DecisionSource.SUGGESTION, f"suggested {reply.strip()!r}")

    def decide_blackjack_seat(self, position: BlackjackPosition) -> BotDecision:
        """Bot seats at the blackjack table never go to the network."""
        return self._blackjack_heuristic(position)

    # --- helpers ---
    def _prompt(self, kind: GameKind, position: Any) -> str:
        if kind == GameKind.CHESS:
            return chess_prompt(position, list(notation.legal_san(position)), self.difficulty)
        if kind == GameKind.POKER:
            return poker_prompt(position, position.to_act)
        return blackjack_prompt(position, position.active)

    def _match(self, kind: GameKind, position: Any, legal: list[str], reply: str) -> Optional[str]:
        """Reply -> exactly one legal move token, or None."""
        token = reply.strip().lower()
        if kind == GameKind.CHESS:
            return notation.match_reply(position, token)
        if kind == GameKind.BLACKJACK:
            return token if token in legal else None
        return self._match_poker(position, legal, token)

    @staticmethod
    def _match_poker(position: Any, legal: list[str], token: str) -> Optional[str]:
        if token in legal:
            return token
        # a bare "raise" means the minimum raise
        if token == "raise":
            return next((action for action in legal if action.startswith("raise:")), None)
        if token.startswith("raise:"):
            try:
                engine_for(GameKind.POKER).apply(position, token)
            except IllegalMoveError:
                return None
            return token
        return None

    def _fallback(self, kind: GameKind, position: Any, legal: list[str], why: str) -> BotDecision:
        if kind == GameKind.BLACKJACK:
            return self._blackjack_heuristic(position)
        return self._random(legal, why)

    def _random(self, legal: list[str], why: str) -> BotDecision:
        return BotDecision(self.rng.choice(legal), DecisionSource.FALLBACK, f"random legal move ({why})")

    @staticmethod
    def _blackjack_heuristic(position: BlackjackPosition) -> BotDecision:
        seat = position.active
        if seat is None:
            raise GameStateError("No blackjack seat is on turn.")
        hand = position.hands[seat]
        total = position.value(seat).total
        if bot_should_hit(hand):
            return BotDecision("hit", DecisionSource.FALLBACK, f"{total} is below 17")
        return BotDecision("stand", DecisionSource.FALLBACK, f"{total} is 17 or more")
