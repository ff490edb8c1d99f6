"""Transit screen: nearby departures for public-facing transit displays."""

__version__ = "0.1.0"
