"""Root conftest so the tests import the in-tree package."""
