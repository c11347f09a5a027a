"""Root conftest: puts the project root on sys.path so tests can import the src package."""
