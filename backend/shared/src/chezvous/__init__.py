"""Payment initiation and webhook confirmation for Chez Nous Chez Vous Apartments."""

__version__ = "0.1.0"
