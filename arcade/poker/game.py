"""
Heads-up Texas Hold'em, one hand per session.

Streets: PreFlop -> Flop -> Turn -> River -> Showdown (never backwards).
Seat 0 is the dealer / small blind: it acts first pre-flop, the other seat acts first on every later street.

Move tokens:
* "fold"        only when facing a bet
* "check"       only when not facing a bet
* "call"        match the current bet (or commit the whole stack when it is shorter)
* "raise:<n>"   raise BY n over the current bet. n >= big blind, unless the cap leaves less.
* "allin"       commit everything the opponent can still match
"""

from dataclasses import dataclass, replace
from enum import IntEnum
from typing import Optional

from arcade.core.cards import Card, shuffled_deck
from arcade.core.exceptions import IllegalMoveError
from arcade.core.models import Seat, Terminal
from arcade.core.shared_types import TerminalKind
from arcade.poker.hand_eval import HandScore, evaluate_best

STARTING_STACK = 1000
SMALL_BLIND = 10
BIG_BLIND = 20
DEALER = 0
NUM_SEATS = 2
BOARD_SIZE = 5

Pair = tuple[int, int]


class Street(IntEnum):
    PRE_FLOP = 0
    FLOP = 1
    TURN = 2
    RIVER = 3
    SHOWDOWN = 4

    @property
    def label(self) -> str:
        return self.name.replace("_", "").lower()


# number of community cards visible on each street
BOARD_CARDS: dict[Street, int] = {
    Street.PRE_FLOP: 0,
    Street.FLOP: 3,
    Street.TURN: 4,
    Street.RIVER: 5,
    Street.SHOWDOWN: 5,
}


def _other(seat: Seat) -> Seat:
    return 1 - seat


def _set(pair: Pair, seat: Seat, value: int) -> Pair:
    return (value, pair[1]) if seat == 0 else (pair[0], value)


@dataclass(frozen=True)
class PokerPosition:
    deck: tuple[Card, ...]  # hole cards are deck[0:4], the board is deck[4:9]
    street: Street
    stacks: Pair
    bets: Pair  # this street
    committed: Pair  # whole hand, including this street's bets
    acted: tuple[bool, bool]  # acted since the last bet / raise
    to_act: Optional[Seat]
    big_blind: int
    folded: Optional[Seat] = None
    last_actor: Optional[Seat] = None
    moves: tuple[str, ...] = ()

    @property
    def pot(self) -> int:
        return sum(self.committed)

    @property
    def board(self) -> tuple[Card, ...]:
        return self.deck[2 * NUM_SEATS : 2 * NUM_SEATS + BOARD_CARDS[self.street]]

    def hole_cards(self, seat: Seat) -> tuple[Card, Card]:
        return self.deck[seat], self.deck[seat + NUM_SEATS]

    @property
    def is_finished(self) -> bool:
        return self.folded is not None or self.street == Street.SHOWDOWN


@dataclass(frozen=True)
class PokerView:
    """What one seat is allowed to see."""

    seat: Seat
    street: str
    board: tuple[str, ...]
    pot: int
    stacks: Pair
    bets: Pair
    to_act: Optional[Seat]
    own_cards: tuple[str, ...]
    opponent_cards: Optional[tuple[str, ...]]


class PokerEngine:
    kind = "poker"

    def new_position(
        self,
        seed: int = 0,
        stacks: Pair = (STARTING_STACK, STARTING_STACK),
        small_blind: int = SMALL_BLIND,
        big_blind: int = BIG_BLIND,
        deck: Optional[tuple[Card, ...]] = None,
    ) -> PokerPosition:
        """Shuffle with `seed` (or use a stacked `deck`), post the blinds. The dealer (seat 0) acts first."""
        blinds = (min(small_blind, stacks[0]), min(big_blind, stacks[1]))
        return PokerPosition(
            deck=deck if deck is not None else shuffled_deck(seed),
            street=Street.PRE_FLOP,
            stacks=(stacks[0] - blinds[0], stacks[1] - blinds[1]),
            bets=blinds,
            committed=blinds,
            acted=(False, False),
            to_act=DEALER,
            big_blind=big_blind,
        )

    # --- RuleEngine contract ---
    def legal_actions(self, position: PokerPosition) -> list[str]:
        """`raise` is listed with its minimum amount, any amount up to the cap is accepted by `apply`."""
        seat = position.to_act
        if seat is None or position.is_finished:
            return []
        to_call = self._to_call(position, seat)
        actions: list[str] = []
        if to_call > 0:
            actions.extend(["fold", "call"])
        else:
            actions.append("check")
        low, high = self._raise_bounds(position, seat)
        if high > 0:
            actions.append(f"raise:{low}")
        if position.stacks[seat] > 0:
            actions.append("allin")
        return actions

    def apply(self, position: PokerPosition, move: str) -> PokerPosition:
        seat = position.to_act
        if seat is None or position.is_finished:
            raise IllegalMoveError(f"Hand is over, cannot play {move!r}.")

        token = move.strip().lower()
        to_call = self._to_call(position, seat)

        if token == "fold":
            if to_call == 0:
                raise IllegalMoveError("Nothing to fold against, check instead.")
            return replace(
                position,
                folded=seat,
                to_act=None,
                last_actor=seat,
                moves=position.moves + (token,),
            )

        if token == "check":
            if to_call > 0:
                raise IllegalMoveError(f"Cannot check, {to_call} to call.")
            amount = 0
        elif token == "call":
            if to_call == 0:
                raise IllegalMoveError("Nothing to call, check instead.")
            amount = min(to_call, position.stacks[seat])
        elif token == "allin":
            if position.stacks[seat] == 0:
                raise IllegalMoveError("No chips left to commit.")
            amount = min(position.stacks[seat], self._max_commitment(position, seat))
        elif token.startswith("raise:"):
            amount = to_call + self._parse_raise(position, seat, token)
        else:
            raise IllegalMoveError(f"Unknown poker action: {move!r}")

        return self._after_bet(position, seat, amount, token)

    def terminal(self, position: PokerPosition) -> Terminal:
        if position.folded is not None:
            return Terminal(
                TerminalKind.FOLD,
                winner=_other(position.folded),
                reason=f"seat {position.folded} folded",
            )
        if position.street != Street.SHOWDOWN:
            return Terminal.none()
        scores = self.showdown_scores(position)
        if scores[0] == scores[1]:
            return Terminal(TerminalKind.SHOWDOWN, reason=f"split pot, {scores[0]}")
        winner = 0 if scores[0] > scores[1] else 1
        return Terminal(TerminalKind.SHOWDOWN, winner=winner, reason=str(scores[winner]))

    def to_move(self, position: PokerPosition) -> Optional[Seat]:
        return None if position.is_finished else position.to_act

    def move_count(self, position: PokerPosition) -> int:
        return len(position.moves)

    # --- results ---
    def showdown_scores(self, position: PokerPosition) -> tuple[HandScore, HandScore]:
        board = position.deck[2 * NUM_SEATS : 2 * NUM_SEATS + BOARD_SIZE]
        return (
            evaluate_best(position.hole_cards(0) + board),
            evaluate_best(position.hole_cards(1) + board),
        )

    def payouts(self, position: PokerPosition) -> Pair:
        """
        Chips each seat receives from the pot once the hand is over.
        Split pot: pot // 2 each, the odd chip goes to the player whose action closed the hand.
        """
        result = self.terminal(position)
        if not result.is_over:
            return (0, 0)
        pot = position.pot
        if result.winner is not None:
            return _set((0, 0), result.winner, pot)
        half = pot // 2
        odd_chip = pot - 2 * half
        closer = position.last_actor if position.last_actor is not None else DEALER
        return _set((half, half), closer, half + odd_chip)

    def final_stacks(self, position: PokerPosition) -> Pair:
        payouts = self.payouts(position)
        return (position.stacks[0] + payouts[0], position.stacks[1] + payouts[1])

    def public_view(self, position: PokerPosition, seat: Seat) -> PokerView:
        """Hole cards of the opponent stay hidden unless the hand went to showdown."""
        opponent_cards = None
        if position.street == Street.SHOWDOWN and position.folded is None:
            opponent_cards = tuple(str(card) for card in position.hole_cards(_other(seat)))
        return PokerView(
            seat=seat,
            street=position.street.label,
            board=tuple(str(card) for card in position.board),
            pot=position.pot,
            stacks=position.stacks,
            bets=position.bets,
            to_act=self.to_move(position),
            own_cards=tuple(str(card) for card in position.hole_cards(seat)),
            opponent_cards=opponent_cards,
        )

    # --- betting helpers ---
    @staticmethod
    def _to_call(position: PokerPosition, seat: Seat) -> int:
        return max(position.bets) - position.bets[seat]

    @staticmethod
    def _max_commitment(position: PokerPosition, seat: Seat) -> int:
        """Never put in more than the opponent could possibly match."""
        opponent = _other(seat)
        opponent_total = position.bets[opponent] + position.stacks[opponent]
        return max(opponent_total - position.bets[seat], 0)

    def _raise_bounds(self, position: PokerPosition, seat: Seat) -> tuple[int, int]:
        """(minimum, maximum) raise-by amount. Maximum 0 means no raise is possible."""
        to_call = self._to_call(position, seat)
        cap = min(position.stacks[seat], self._max_commitment(position, seat))
        high = max(cap - to_call, 0)
        return min(position.big_blind, high), high

    def _parse_raise(self, position: PokerPosition, seat: Seat, token: str) -> int:
        try:
            raise_by = int(token.split(":", 1)[1])
        except ValueError as exc:
            raise IllegalMoveError(f"Cannot read raise amount from {token!r}") from exc
        low, high = self._raise_bounds(position, seat)
        if high == 0:
            raise IllegalMoveError("Raising is not possible in this spot.")
        if not low <= raise_by <= high:
            raise IllegalMoveError(f"Raise must be between {low} and {high}, got {raise_by}.")
        return raise_by

    def _after_bet(
        self, position: PokerPosition, seat: Seat, amount: int, token: str
    ) -> PokerPosition:
        """Move `amount` chips from the stack into the bet, then see if the betting round is done."""
        new_bet = position.bets[seat] + amount
        is_raise = new_bet > max(position.bets)
        acted = _set_flags(seat) if is_raise else _set_flag(position.acted, seat)

        position = replace(
            position,
            stacks=_set(position.stacks, seat, position.stacks[seat] - amount),
            bets=_set(position.bets, seat, new_bet),
            committed=_set(position.committed, seat, position.committed[seat] + amount),
            acted=acted,
            last_actor=seat,
            moves=position.moves + (token,),
        )

        if not self._round_complete(position):
            return replace(position, to_act=_other(seat))
        return self._next_street(self._return_uncalled(position))

    @staticmethod
    def _round_complete(position: PokerPosition) -> bool:
        """
        Done when
        * bets are equal and everyone with chips left has acted since the last raise, or
        * the player with the smaller bet is all-in (the excess gets returned)
        """
        low = 0 if position.bets[0] <= position.bets[1] else 1
        if position.bets[0] == position.bets[1]:
            return all(
                position.acted[seat] or position.stacks[seat] == 0
                for seat in range(NUM_SEATS)
            )
        return position.stacks[low] == 0

    @staticmethod
    def _return_uncalled(position: PokerPosition) -> PokerPosition:
        high = 0 if position.bets[0] > position.bets[1] else 1
        excess = position.bets[high] - position.bets[_other(high)]
        if excess <= 0:
            return position
        return replace(
            position,
            stacks=_set(position.stacks, high, position.stacks[high] + excess),
            bets=_set(position.bets, high, position.bets[high] - excess),
            committed=_set(position.committed, high, position.committed[high] - excess),
        )

    @staticmethod
    def _next_street(position: PokerPosition) -> PokerPosition:
        """Deal the next street. With a player all-in the board is run out straight to showdown."""
        someone_all_in = 0 in position.stacks
        street = (
            Street.SHOWDOWN
            if someone_all_in
            else Street(min(position.street + 1, Street.SHOWDOWN))
        )
        return replace(
            position,
            street=street,
            bets=(0, 0),
            acted=(False, False),
            to_act=None if street == Street.SHOWDOWN else _other(DEALER),
        )


def _set_flag(flags: tuple[bool, bool], seat: Seat) -> tuple[bool, bool]:
    return (True, flags[1]) if seat == 0 else (flags[0], True)


def _set_flags(seat: Seat) -> tuple[bool, bool]:
    """After a raise only the raiser has acted."""
    return _set_flag((False, False), seat)
