"""
Game constants for UNO.

Room limits and the opening hand size come from config.py (environment
aware); the penalty sizes and deck composition are fixed by the rules.

Standard UNO deck (108 cards):
    - Per color (red, blue, green, yellow): one 0, two each of 1-9,
      two each of Skip, Reverse and Draw Two (25 cards)
    - 4 Wild and 4 Wild Draw Four
"""

from config import config


# =============================================================================
# Room Limits
# =============================================================================

MAX_PLAYERS = config.MAX_PLAYERS_PER_ROOM
MIN_PLAYERS = config.MIN_PLAYERS
ROOM_CODE_LENGTH = config.ROOM_CODE_LENGTH
MAX_NAME_LENGTH = config.MAX_NAME_LENGTH

DEFAULT_PLAYER_NAME = "Player"


# =============================================================================
# Deck & Dealing
# =============================================================================

HAND_SIZE = config.HAND_SIZE

NUMBER_CARD_COPIES = 2      # copies of 1-9 per color (0 has one)
ACTION_CARD_COPIES = 2      # copies of each action card per color
WILD_CARD_COPIES = 4        # copies of each wild type
STANDARD_DECK_SIZE = 108

# Color used when the first flipped card is a wild
DEFAULT_START_COLOR = "red"


# =============================================================================
# Penalties
# =============================================================================

DRAW_TWO_PENALTY = 2
WILD_DRAW_FOUR_PENALTY = 4
FAILED_CHALLENGE_PENALTY = 1    # challenger draws when the target had called UNO
MISSED_UNO_PENALTY = 2          # target draws when caught without calling UNO
