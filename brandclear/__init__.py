"""Brand name generation and clearance: web presence, domains, trademarks, scoring."""

__version__ = "0.1.0"
