"""
Blackjack: one human seat plus bot seats against the dealer, a single round per session.

Seat 0 is the human, seats 1.. are bots. Seats act in order, each until it stands, busts or doubles.
The dealer acts once every seat is resolved. Move tokens: "hit", "stand", "double".
"""

from dataclasses import dataclass, replace
from enum import StrEnum
from typing import Optional

from arcade.blackjack.hand import HandValue, dealer_should_draw, hand_value
from arcade.core.cards import Card, shuffled_deck
from arcade.core.exceptions import GameStateError, IllegalMoveError
from arcade.core.models import Seat, Terminal
from arcade.core.shared_types import TerminalKind

DEALER_SEAT = -1
HUMAN_SEAT = 0
BOT_NAMES = ("Bot Alice", "Bot Bob", "Bot Charlie")
DEFAULT_BET = 100
DEFAULT_CHIPS = 1000
NUM_DECKS = 6


class SeatStatus(StrEnum):
    PLAYING = "playing"
    STOOD = "stood"
    DOUBLED = "doubled"
    BUSTED = "busted"
    NATURAL = "blackjack"


class Outcome(StrEnum):
    NATURAL = "blackjack"
    WIN = "win"
    PUSH = "push"
    LOSE = "lose"


# chips handed back per unit of stake (stake included)
PAYOUT_RATIOS: dict[Outcome, tuple[int, int]] = {
    Outcome.NATURAL: (5, 2),
    Outcome.WIN: (2, 1),
    Outcome.PUSH: (1, 1),
    Outcome.LOSE: (0, 1),
}


def payout(outcome: Outcome, bet: int) -> int:
    numerator, denominator = PAYOUT_RATIOS[outcome]
    return bet * numerator // denominator


@dataclass(frozen=True)
class BlackjackPosition:
    shoe: tuple[Card, ...]
    next_card: int
    names: tuple[str, ...]
    hands: tuple[tuple[Card, ...], ...]
    dealer: tuple[Card, ...]
    bets: tuple[int, ...]
    chips: tuple[int, ...]  # stake already taken off
    statuses: tuple[SeatStatus, ...]
    active: Optional[Seat]
    outcomes: Optional[tuple[Outcome, ...]] = None
    moves: tuple[str, ...] = ()

    @property
    def settled(self) -> bool:
        return self.outcomes is not None

    @property
    def num_seats(self) -> int:
        return len(self.hands)

    def value(self, seat: Seat) -> HandValue:
        return hand_value(self.dealer if seat == DEALER_SEAT else self.hands[seat])

    def dealer_visible(self) -> tuple[Card, ...]:
        """The hole card stays face down until the dealer plays."""
        return self.dealer if self.settled else self.dealer[:1]


def _replace_at(values: tuple, index: int, value) -> tuple:
    return values[:index] + (value,) + values[index + 1 :]


class BlackjackEngine:
    kind = "blackjack"

    def new_position(
        self,
        seed: int = 0,
        bot_seats: int = len(BOT_NAMES),
        bet: int = DEFAULT_BET,
        chips: int = DEFAULT_CHIPS,
        player_name: str = "You",
        shoe: Optional[tuple[Card, ...]] = None,
    ) -> BlackjackPosition:
        """
        Shuffle the shoe (or use the stacked `shoe` given), take the bets,
        deal: each seat, dealer, each seat, dealer. Then resolve naturals.
        """
        if bet > chips:
            raise GameStateError(f"Cannot bet {bet} with {chips} chips.")
        num_seats = 1 + bot_seats
        if shoe is None:
            shoe = shuffled_deck(seed, NUM_DECKS)

        # deal order: seat 0..n-1, dealer, seat 0..n-1, dealer
        stride = num_seats + 1
        hands = tuple((shoe[seat], shoe[seat + stride]) for seat in range(num_seats))
        dealer = (shoe[num_seats], shoe[num_seats + stride])

        position = BlackjackPosition(
            shoe=shoe,
            next_card=2 * stride,
            names=(player_name,) + BOT_NAMES[:bot_seats],
            hands=hands,
            dealer=dealer,
            bets=(bet,) * num_seats,
            chips=(chips - bet,) * num_seats,
            statuses=tuple(
                SeatStatus.NATURAL if hand_value(hand).natural else SeatStatus.PLAYING
                for hand in hands
            ),
            active=None,
        )

        if hand_value(dealer).natural:
            return self._settle(position)
        return self._advance(position, start=0)

    # --- RuleEngine contract ---
    def legal_actions(self, position: BlackjackPosition) -> list[str]:
        seat = position.active
        if seat is None:
            return []
        actions = ["hit", "stand"]
        if self._can_double(position, seat):
            actions.append("double")
        return actions

    def apply(self, position: BlackjackPosition, move: str) -> BlackjackPosition:
        seat = position.active
        if seat is None:
            raise IllegalMoveError(f"Round is over, cannot play {move!r}.")
        token = move.strip().lower()
        moves = position.moves + (token,)

        if token == "stand":
            position = self._set_status(position, seat, SeatStatus.STOOD)
            return self._advance(replace(position, moves=moves), start=seat + 1)

        if token == "hit":
            position = replace(self._draw_to(position, seat), moves=moves)
            value = position.value(seat)
            if value.busted:
                position = self._set_status(position, seat, SeatStatus.BUSTED)
            elif value.total == 21:
                position = self._set_status(position, seat, SeatStatus.STOOD)
            else:
                return position
            return self._advance(position, start=seat + 1)

        if token == "double":
            if not self._can_double(position, seat):
                raise IllegalMoveError("Double needs exactly two cards and enough chips.")
            bet = position.bets[seat]
            position = replace(
                position,
                bets=_replace_at(position.bets, seat, 2 * bet),
                chips=_replace_at(position.chips, seat, position.chips[seat] - bet),
                moves=moves,
            )
            position = self._draw_to(position, seat)
            status = SeatStatus.BUSTED if position.value(seat).busted else SeatStatus.DOUBLED
            position = self._set_status(position, seat, status)
            return self._advance(position, start=seat + 1)

        raise IllegalMoveError(f"Unknown blackjack action: {move!r}")

    def terminal(self, position: BlackjackPosition) -> Terminal:
        """Reported from the human seat's point of view."""
        if position.outcomes is None:
            return Terminal.none()
        outcome = position.outcomes[HUMAN_SEAT]
        if outcome in (Outcome.WIN, Outcome.NATURAL):
            winner: Optional[Seat] = HUMAN_SEAT
        elif outcome == Outcome.PUSH:
            winner = None
        else:
            winner = DEALER_SEAT
        return Terminal(TerminalKind.SETTLED, winner=winner, reason=outcome.value)

    def to_move(self, position: BlackjackPosition) -> Optional[Seat]:
        return position.active

    def move_count(self, position: BlackjackPosition) -> int:
        return len(position.moves)

    # --- helpers ---
    @staticmethod
    def _can_double(position: BlackjackPosition, seat: Seat) -> bool:
        return (
            len(position.hands[seat]) == 2
            and position.chips[seat] >= position.bets[seat]
        )

    @staticmethod
    def _set_status(
        position: BlackjackPosition, seat: Seat, status: SeatStatus
    ) -> BlackjackPosition:
        return replace(position, statuses=_replace_at(position.statuses, seat, status))

    @staticmethod
    def _draw_to(position: BlackjackPosition, seat: Seat) -> BlackjackPosition:
        if position.next_card >= len(position.shoe):
            raise GameStateError("The shoe ran out of cards.")
        card = position.shoe[position.next_card]
        if seat == DEALER_SEAT:
            return replace(
                position, dealer=position.dealer + (card,), next_card=position.next_card + 1
            )
        return replace(
            position,
            hands=_replace_at(position.hands, seat, position.hands[seat] + (card,)),
            next_card=position.next_card + 1,
        )

    def _advance(self, position: BlackjackPosition, start: Seat) -> BlackjackPosition:
        """Hand the turn to the next seat still playing, or let the dealer finish the round."""
        for seat in range(start, position.num_seats):
            if position.statuses[seat] == SeatStatus.PLAYING:
                return replace(position, active=seat)
        return self._settle(self._dealer_plays(position))

    def _dealer_plays(self, position: BlackjackPosition) -> BlackjackPosition:
        """The dealer only draws while some seat is still in the game (not busted, not paid a natural)."""
        contested = any(
            status in (SeatStatus.STOOD, SeatStatus.DOUBLED)
            for status in position.statuses
        )
        while contested and dealer_should_draw(position.dealer):
            position = self._draw_to(position, DEALER_SEAT)
        return position

    @staticmethod
    def _outcome(position: BlackjackPosition, seat: Seat) -> Outcome:
        status = position.statuses[seat]
        dealer = position.value(DEALER_SEAT)
        if dealer.natural:
            return Outcome.PUSH if status == SeatStatus.NATURAL else Outcome.LOSE
        if status == SeatStatus.NATURAL:
            return Outcome.NATURAL
        if status == SeatStatus.BUSTED:
            return Outcome.LOSE
        if dealer.busted:
            return Outcome.WIN
        own = position.value(seat).total
        if own > dealer.total:
            return Outcome.WIN
        if own == dealer.total:
            return Outcome.PUSH
        return Outcome.LOSE

    def _settle(self, position: BlackjackPosition) -> BlackjackPosition:
        outcomes = tuple(self._outcome(position, seat) for seat in range(position.num_seats))
        chips = tuple(
            position.chips[seat] + payout(outcomes[seat], position.bets[seat])
            for seat in range(position.num_seats)
        )
        return replace(position, outcomes=outcomes, chips=chips, active=None)
