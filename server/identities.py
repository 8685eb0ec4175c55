"""
Display names for connected users.

Maps connection identifiers to the names users log in with. Rooms and games
only read from the directory (through the gateway); names are captured when
a player joins a room.
"""

import logging
from typing import Optional

from constants import DEFAULT_PLAYER_NAME, MAX_NAME_LENGTH
from errors import InvalidName, NameTaken

logger = logging.getLogger(__name__)


class IdentityDirectory:
    """Connection id -> display name, unique among connected users."""

    def __init__(self, max_name_length: int = MAX_NAME_LENGTH) -> None:
        self._names: dict[str, str] = {}
        self.max_name_length = max_name_length

    def register(self, connection_id: str, name) -> str:
        """
        Log a connection in under a display name.

        Args:
            connection_id: The connection logging in.
            name: Requested display name (surrounding whitespace is dropped).

        Returns:
            The stored name.

        Raises:
            InvalidName: Empty or too long.
            NameTaken: Another connection already uses the name.
        """
        name = str(name or "").strip()
        if not name:
            raise InvalidName("Display name cannot be empty")
        if len(name) > self.max_name_length:
            raise InvalidName(f"Display name must be at most {self.max_name_length} characters")

        for other_id, other_name in self._names.items():
            if other_name == name and other_id != connection_id:
                raise NameTaken()

        self._names[connection_id] = name
        logger.debug(f"Connection {connection_id} logged in as {name}")
        return name

    def unregister(self, connection_id: str) -> Optional[str]:
        return self._names.pop(connection_id, None)

    def is_registered(self, connection_id: str) -> bool:
        return connection_id in self._names

    def display_name(self, connection_id: str) -> str:
        """Name for a connection, or the default name if it never logged in."""
        return self._names.get(connection_id, DEFAULT_PLAYER_NAME)

    def names(self) -> list[str]:
        return list(self._names.values())

    def __len__(self) -> int:
        return len(self._names)
