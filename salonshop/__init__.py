"""Salon shop order and cart engine."""

__version__ = "0.1.0"
