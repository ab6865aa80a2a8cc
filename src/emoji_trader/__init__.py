"""Trading bot for the emoji stock exchange workshop."""

__version__ = "0.1.0"
