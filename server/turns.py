"""Turn order helpers for UNO.

Turn order follows the room's member list. Direction is +1 (clockwise,
down the list) or -1 (after a Reverse).
"""

from typing import Optional, Sequence


def next_player_id(order: Sequence[str], current: Optional[str], direction: int) -> Optional[str]:
    """
    Get the player who follows ``current`` in the given direction.

    Args:
        order: Player IDs in seating order.
        current: ID of the player whose turn it is now.
        direction: +1 or -1.

    Returns:
        The next player ID, or None if nobody is seated. If ``current`` is
        no longer seated, play resumes from the first seat in the direction
        of travel.
    """
    if not order:
        return None
    if current not in order:
        return order[0] if direction > 0 else order[-1]
    index = order.index(current)
    return order[(index + direction) % len(order)]
