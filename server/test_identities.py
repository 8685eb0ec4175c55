"""
Tests for the display-name directory.

Run with: pytest test_identities.py -v
"""

import pytest

from errors import InvalidName, NameTaken
from identities import IdentityDirectory


class TestIdentityDirectory:

    def test_register_strips_name(self):
        directory = IdentityDirectory()
        assert directory.register("c1", "  Alice  ") == "Alice"
        assert directory.display_name("c1") == "Alice"

    def test_unregistered_gets_default_name(self):
        assert IdentityDirectory().display_name("c1") == "Player"

    def test_names_are_unique(self):
        directory = IdentityDirectory()
        directory.register("c1", "Alice")
        with pytest.raises(NameTaken):
            directory.register("c2", "Alice")

    def test_same_connection_may_reregister(self):
        directory = IdentityDirectory()
        directory.register("c1", "Alice")
        directory.register("c1", "Alice")
        assert len(directory) == 1

    def test_rename(self):
        directory = IdentityDirectory()
        directory.register("c1", "Alice")
        directory.register("c1", "Alicia")
        assert directory.names() == ["Alicia"]

    @pytest.mark.parametrize("name", ["", "   ", None, "x" * 33])
    def test_invalid_names(self, name):
        with pytest.raises(InvalidName):
            IdentityDirectory(max_name_length=32).register("c1", name)

    def test_unregister_frees_name(self):
        directory = IdentityDirectory()
        directory.register("c1", "Alice")
        assert directory.unregister("c1") == "Alice"
        assert not directory.is_registered("c1")
        directory.register("c2", "Alice")
        assert directory.unregister("missing") is None
