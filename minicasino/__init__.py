"""Client core for the tigrinho / doble casino mini-games."""

__version__ = "0.3.0"
