"""
Game logic for UNO.

This module implements the core rules for a room's UNO game: the card
vocabulary, the 108-card deck, dealing, play legality, special-card effects,
deck recycling, the win condition and the UNO call/challenge side game.

UNO Rules Summary (as played here):
    - Each player is dealt 7 cards; one card is flipped to start the discard pile
    - On your turn: play a card matching the current color or the top card's
      value, play any wild, or draw one card (drawing ends your turn)
    - Skip, Draw Two and Wild Draw Four skip the next player; the draw cards
      make that player draw 2 or 4 first
    - Reverse flips the direction of play
    - First player to empty their hand wins

Turn order:
    [P0] -> [P1] -> [P2] -> [P0] ...   (direction +1)
    [P0] -> [P2] -> [P1] -> [P0] ...   (direction -1, after a Reverse)
"""

import logging
import random
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, Union

from constants import (
    ACTION_CARD_COPIES,
    DEFAULT_START_COLOR,
    DRAW_TWO_PENALTY,
    FAILED_CHALLENGE_PENALTY,
    HAND_SIZE,
    MIN_PLAYERS,
    MISSED_UNO_PENALTY,
    NUMBER_CARD_COPIES,
    WILD_CARD_COPIES,
    WILD_DRAW_FOUR_PENALTY,
)
from errors import (
    GameAlreadyStarted,
    GameOver,
    IllegalPlay,
    InvalidCardIndex,
    InvalidChallenge,
    InvalidUnoCall,
    NotActivePlayer,
    NotEnoughPlayers,
    NotOwner,
    PlayerNotFound,
    RoomNotActive,
    TargetNotFound,
)
from turns import next_player_id

logger = logging.getLogger(__name__)


class Color(str, Enum):
    """Card colors. Wild cards carry NONE until played."""

    RED = "red"
    BLUE = "blue"
    GREEN = "green"
    YELLOW = "yellow"
    NONE = "none"


PLAYABLE_COLORS = (Color.RED, Color.BLUE, Color.GREEN, Color.YELLOW)


class CardType(str, Enum):
    """Card types in a standard UNO deck."""

    NUMBER = "number"
    SKIP = "skip"
    REVERSE = "reverse"
    DRAW_TWO = "draw_two"
    WILD = "wild"
    WILD_DRAW_FOUR = "wild_draw_four"


WILD_TYPES = frozenset({CardType.WILD, CardType.WILD_DRAW_FOUR})
ACTION_TYPES = (CardType.SKIP, CardType.REVERSE, CardType.DRAW_TWO)


@dataclass(frozen=True)
class Card:
    """
    An UNO card.

    Attributes:
        type: The card type (number, skip, reverse, draw_two, wild, wild_draw_four).
        color: The card's color; Color.NONE exactly for the two wild types.
        value: 0-9 for number cards, otherwise the type name ("skip", "wild", ...).
            Value equality is what lets a Skip be played on any Skip.
    """

    type: CardType
    color: Color
    value: Union[int, str]

    def __post_init__(self) -> None:
        if (self.type in WILD_TYPES) != (self.color == Color.NONE):
            raise ValueError(f"{self.type.value} card cannot have color {self.color.value}")
        if self.type == CardType.NUMBER:
            if not isinstance(self.value, int) or not 0 <= self.value <= 9:
                raise ValueError(f"Invalid number card value: {self.value!r}")
        elif self.value != self.type.value:
            raise ValueError(f"{self.type.value} card must have value {self.type.value!r}")

    @classmethod
    def number(cls, color: Color, value: int) -> "Card":
        return cls(CardType.NUMBER, color, value)

    @classmethod
    def action(cls, card_type: CardType, color: Color = Color.NONE) -> "Card":
        """Build a non-number card; wild types take the default NONE color."""
        return cls(card_type, color, card_type.value)

    @property
    def is_wild(self) -> bool:
        return self.type in WILD_TYPES

    def to_dict(self) -> dict:
        """Convert card to dictionary for JSON serialization."""
        return {
            "type": self.type.value,
            "color": self.color.value,
            "value": self.value,
        }

    def __str__(self) -> str:
        if self.is_wild:
            return str(self.value)
        return f"{self.color.value} {self.value}"


def build_standard_deck() -> list[Card]:
    """
    Build the 108-card UNO deck in canonical (unshuffled) order.

    Per color: one 0, two each of 1-9, two each of Skip/Reverse/Draw Two.
    Then four Wild and four Wild Draw Four.
    """
    cards: list[Card] = []
    for color in PLAYABLE_COLORS:
        cards.append(Card.number(color, 0))
        for value in range(1, 10):
            cards.extend(Card.number(color, value) for _ in range(NUMBER_CARD_COPIES))
        for card_type in ACTION_TYPES:
            cards.extend(Card.action(card_type, color) for _ in range(ACTION_CARD_COPIES))

    for _ in range(WILD_CARD_COPIES):
        cards.append(Card.action(CardType.WILD))
        cards.append(Card.action(CardType.WILD_DRAW_FOUR))
    return cards


def shuffle_deck(cards: list[Card], rng: Optional[random.Random] = None) -> list[Card]:
    """
    Shuffle cards in place (Fisher-Yates) and return the same list.

    Args:
        cards: Cards to permute.
        rng: Random source; defaults to the module-level generator.
    """
    rng = rng or random
    for i in range(len(cards) - 1, 0, -1):
        j = rng.randrange(i + 1)
        cards[i], cards[j] = cards[j], cards[i]
    return cards


def parse_color(value) -> Optional[Color]:
    """Return the playable Color named by value, or None."""
    try:
        color = Color(value)
    except ValueError:
        return None
    return color if color in PLAYABLE_COLORS else None


@dataclass
class Player:
    """
    A player in an UNO game.

    Attributes:
        id: Connection identifier of the player.
        name: Display name, captured when the player joined.
        hand: Cards held by the player (hidden from opponents).
    """

    id: str
    name: str
    hand: list[Card] = field(default_factory=list)


class GameStatus(str, Enum):
    """
    Lifecycle of a room's game.

    Flow: WAITING -> ACTIVE -> GAME_OVER (terminal)
    """

    WAITING = "waiting"      # Lobby, waiting for players to join
    ACTIVE = "active"        # Cards dealt, taking turns
    GAME_OVER = "game_over"  # Someone emptied their hand


@dataclass
class PlayResult:
    """Outcome of a successful play, used to describe the move to the room."""

    player_id: str
    card: Card
    color: Color
    victim_id: Optional[str] = None
    cards_drawn: int = 0
    game_over: bool = False


@dataclass
class ChallengeResult:
    """Outcome of an UNO challenge."""

    challenger_id: str
    target_id: str
    success: bool
    penalized_id: str
    cards_drawn: int


@dataclass
class Game:
    """
    Authoritative UNO game state for one room.

    Not safe for concurrent use on its own: callers hold the owning Room's
    lock around every mutating call.

    Attributes:
        players: Players in seating order; players[0] owns the room.
        deck: The draw pile (top is the last element).
        discard_pile: Played cards (top is the last element).
        status: Current lifecycle status.
        current_player_id: ID of the player whose turn it is.
        current_color: Color that non-matching-value plays must follow.
        direction: +1 or -1.
        uno_caller_id: Player who called UNO and still holds one card.
        winner_id: ID of the winner once the game is over.
        rng: Random source for shuffles.
    """

    players: list[Player] = field(default_factory=list)
    deck: list[Card] = field(default_factory=list)
    discard_pile: list[Card] = field(default_factory=list)
    status: GameStatus = GameStatus.WAITING
    current_player_id: Optional[str] = None
    current_color: Optional[Color] = None
    direction: int = 1
    uno_caller_id: Optional[str] = None
    winner_id: Optional[str] = None
    winner_name: Optional[str] = None
    rng: random.Random = field(default_factory=random.Random, repr=False, compare=False)

    # -------------------------------------------------------------------------
    # Player Management
    # -------------------------------------------------------------------------

    def add_player(self, player: Player) -> None:
        """Seat a player at the end of the turn order."""
        self.players.append(player)

    def remove_player(self, player_id: str) -> Optional[Player]:
        """
        Remove a player, keeping the game consistent.

        Their cards go to the bottom of the deck. If it was their turn, the
        turn passes to the next seat in the current direction. An active game
        left with a single player ends with that player as the winner.

        Returns:
            The removed Player, or None if not found.
        """
        player = self.get_player(player_id)
        if player is None:
            return None

        successor = None
        if self.status == GameStatus.ACTIVE and self.current_player_id == player_id:
            successor = next_player_id(self.player_ids(), player_id, self.direction)

        self.players.remove(player)
        if player.hand:
            self.deck[0:0] = player.hand
            player.hand = []
        if self.uno_caller_id == player_id:
            self.uno_caller_id = None

        if self.status == GameStatus.ACTIVE:
            if len(self.players) < MIN_PLAYERS:
                self._finish(self.players[0] if self.players else None)
            elif successor is not None:
                self.current_player_id = successor
        return player

    def get_player(self, player_id: str) -> Optional[Player]:
        for player in self.players:
            if player.id == player_id:
                return player
        return None

    def find_player_by_name(self, name: str) -> Optional[Player]:
        for player in self.players:
            if player.name == name:
                return player
        return None

    def player_ids(self) -> list[str]:
        return [p.id for p in self.players]

    def current_player(self) -> Optional[Player]:
        """Get the player whose turn it currently is."""
        if self.current_player_id is None:
            return None
        return self.get_player(self.current_player_id)

    def top_card(self) -> Optional[Card]:
        """Get the top card of the discard pile (if any)."""
        if self.discard_pile:
            return self.discard_pile[-1]
        return None

    def card_count(self) -> int:
        """Total cards across hands, deck and discard pile."""
        return sum(len(p.hand) for p in self.players) + len(self.deck) + len(self.discard_pile)

    # -------------------------------------------------------------------------
    # Game Lifecycle
    # -------------------------------------------------------------------------

    def start_game(self, actor_id: str) -> None:
        """
        Deal a fresh shuffled deck and begin play.

        Args:
            actor_id: Player requesting the start; must be the room owner.

        Raises:
            GameAlreadyStarted: If the game is not waiting.
            NotOwner: If actor is not the first seated player.
            NotEnoughPlayers: With fewer than two players.
        """
        if self.status != GameStatus.WAITING:
            raise GameAlreadyStarted()
        if not self.players or self.players[0].id != actor_id:
            raise NotOwner()
        if len(self.players) < MIN_PLAYERS:
            raise NotEnoughPlayers(f"Need at least {MIN_PLAYERS} players")

        deck = shuffle_deck(build_standard_deck(), self.rng)
        for player in self.players:
            player.hand = [deck.pop() for _ in range(HAND_SIZE)]

        first = deck.pop()
        self.deck = deck
        self.discard_pile = [first]
        # A wild start card has no color of its own
        self.current_color = Color(DEFAULT_START_COLOR) if first.is_wild else first.color
        self.current_player_id = self.players[0].id
        self.direction = 1
        self.uno_caller_id = None
        self.winner_id = None
        self.winner_name = None
        self.status = GameStatus.ACTIVE

        logger.info(
            f"Game started: {len(self.players)} players, top card {first}, "
            f"color {self.current_color.value}"
        )

    def _finish(self, winner: Optional[Player]) -> None:
        self.status = GameStatus.GAME_OVER
        self.uno_caller_id = None
        self.winner_id = winner.id if winner else None
        self.winner_name = winner.name if winner else None
        logger.info(f"Game over: winner {self.winner_name}")

    def _require_active(self) -> None:
        if self.status == GameStatus.GAME_OVER:
            raise GameOver()
        if self.status != GameStatus.ACTIVE:
            raise RoomNotActive()

    def _require_turn(self, actor_id: str) -> Player:
        self._require_active()
        player = self.get_player(actor_id)
        if player is None:
            raise PlayerNotFound()
        if actor_id != self.current_player_id:
            raise NotActivePlayer()
        return player

    # -------------------------------------------------------------------------
    # Turn Actions
    # -------------------------------------------------------------------------

    def advance_turn(self) -> Optional[str]:
        """Pass the turn one seat in the current direction."""
        self.current_player_id = next_player_id(
            self.player_ids(), self.current_player_id, self.direction
        )
        return self.current_player_id

    def is_playable(self, card: Card) -> bool:
        """Check a card against the current color and the top card's value."""
        if card.is_wild:
            return True
        top = self.top_card()
        if card.color == self.current_color:
            return True
        return top is not None and card.value == top.value

    def play_card(
        self,
        actor_id: str,
        hand_index: int,
        chosen_color: Optional[Union[Color, str]] = None,
    ) -> PlayResult:
        """
        Play a card from the actor's hand onto the discard pile.

        Args:
            actor_id: ID of the player playing.
            hand_index: Position of the card in their hand.
            chosen_color: Required for wild cards; ignored otherwise.

        Returns:
            PlayResult describing the play and any penalty draw.

        Raises:
            GameOver, RoomNotActive, PlayerNotFound, NotActivePlayer,
            InvalidCardIndex, IllegalPlay. Nothing is changed on failure.
        """
        player = self._require_turn(actor_id)

        if isinstance(hand_index, bool) or not isinstance(hand_index, int):
            raise InvalidCardIndex()
        if not 0 <= hand_index < len(player.hand):
            raise InvalidCardIndex()

        card = player.hand[hand_index]
        if not self.is_playable(card):
            raise IllegalPlay()

        if card.is_wild:
            color = parse_color(chosen_color)
            if color is None:
                raise IllegalPlay("Choose red, blue, green or yellow for a wild card")
        else:
            color = card.color

        player.hand.pop(hand_index)
        self.discard_pile.append(card)
        self.current_color = color
        self._hand_changed(player)

        result = PlayResult(player_id=actor_id, card=card, color=color)

        if card.type == CardType.SKIP:
            self.advance_turn()
            self.advance_turn()
        elif card.type == CardType.REVERSE:
            self.direction = -self.direction
            self.advance_turn()
        elif card.type in (CardType.DRAW_TWO, CardType.WILD_DRAW_FOUR):
            penalty = DRAW_TWO_PENALTY if card.type == CardType.DRAW_TWO else WILD_DRAW_FOUR_PENALTY
            self.advance_turn()
            victim = self.current_player()
            drawn = self._draw_cards(victim, penalty)
            result.victim_id = victim.id
            result.cards_drawn = len(drawn)
            self.advance_turn()
        else:
            self.advance_turn()

        if not player.hand:
            self._finish(player)
            result.game_over = True

        logger.debug(f"{player.name} played {card}; next {self.current_player_id}")
        return result

    def draw_card(self, actor_id: str) -> Optional[Card]:
        """
        Draw one card for the current player and pass the turn.

        Returns:
            The drawn Card, or None if no card was left anywhere.
        """
        player = self._require_turn(actor_id)
        drawn = self._draw_cards(player, 1)
        self.advance_turn()
        return drawn[0] if drawn else None

    def call_uno(self, actor_id: str) -> None:
        """
        Declare UNO. Any player may call at any time while holding one card.

        Raises:
            InvalidUnoCall: If the caller does not hold exactly one card.
        """
        self._require_active()
        player = self.get_player(actor_id)
        if player is None:
            raise PlayerNotFound()
        if len(player.hand) != 1:
            raise InvalidUnoCall()
        self.uno_caller_id = actor_id

    def challenge_uno(self, challenger_id: str, target_name: str) -> ChallengeResult:
        """
        Challenge a player holding one card who may not have called UNO.

        If the target called UNO the challenger draws one card; otherwise the
        target draws two.
        """
        self._require_active()
        challenger = self.get_player(challenger_id)
        if challenger is None:
            raise PlayerNotFound()
        target = self.find_player_by_name(target_name)
        if target is None:
            raise TargetNotFound()
        if target.id == challenger.id:
            raise InvalidChallenge("You cannot challenge yourself")
        if len(target.hand) != 1:
            raise InvalidChallenge()

        if self.uno_caller_id == target.id:
            drawn = self._draw_cards(challenger, FAILED_CHALLENGE_PENALTY)
            return ChallengeResult(challenger.id, target.id, False, challenger.id, len(drawn))

        drawn = self._draw_cards(target, MISSED_UNO_PENALTY)
        return ChallengeResult(challenger.id, target.id, True, target.id, len(drawn))

    # -------------------------------------------------------------------------
    # Deck Management
    # -------------------------------------------------------------------------

    def _reshuffle_discard_pile(self) -> bool:
        """
        Turn the discard pile, minus its top card, into a fresh deck.

        Returns:
            False if there was nothing under the top card to recycle.
        """
        if len(self.discard_pile) <= 1:
            return False

        top = self.discard_pile[-1]
        self.deck = shuffle_deck(self.discard_pile[:-1], self.rng)
        self.discard_pile = [top]
        logger.debug(f"Reshuffled {len(self.deck)} discards into the deck")
        return True

    def _draw_one(self) -> Optional[Card]:
        if not self.deck and not self._reshuffle_discard_pile():
            return None
        return self.deck.pop()

    def _draw_cards(self, player: Player, count: int) -> list[Card]:
        """Move up to count cards into a player's hand, recycling as needed."""
        drawn = []
        for _ in range(count):
            card = self._draw_one()
            if card is None:
                break
            drawn.append(card)
        player.hand.extend(drawn)
        self._hand_changed(player)
        return drawn

    def _hand_changed(self, player: Player) -> None:
        # An UNO call only covers the single card it was made with
        if self.uno_caller_id == player.id and len(player.hand) != 1:
            self.uno_caller_id = None

    # -------------------------------------------------------------------------
    # Client State
    # -------------------------------------------------------------------------

    def get_state(self, for_player_id: Optional[str]) -> dict:
        """
        Get the game state as seen by one player.

        Only the viewer's own hand is included; opponents are reduced to
        hand sizes.

        Args:
            for_player_id: The player who will receive this state.

        Returns:
            Dict containing status, roster, top card, turn, color and hand info.
        """
        top = self.top_card()
        current = self.current_player()
        viewer = self.get_player(for_player_id) if for_player_id else None
        uno_caller = self.get_player(self.uno_caller_id) if self.uno_caller_id else None

        return {
            "status": self.status.value,
            "players": [p.name for p in self.players],
            "owner": self.players[0].name if self.players else None,
            "top_card": top.to_dict() if top else None,
            "current_player": current.name if current else None,
            "current_color": self.current_color.value if self.current_color else None,
            "direction": self.direction,
            "deck_size": len(self.deck),
            "discard_size": len(self.discard_pile),
            "hand": [c.to_dict() for c in viewer.hand] if viewer else [],
            "hand_sizes": {p.name: len(p.hand) for p in self.players},
            "opponent_hand_sizes": {
                p.name: len(p.hand) for p in self.players if p is not viewer
            },
            "is_your_turn": bool(viewer and current is viewer),
            "uno_caller": uno_caller.name if uno_caller else None,
            "winner": self.winner_name,
        }
