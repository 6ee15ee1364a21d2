"""issuedigger: finds similar GitHub issues via semantic vectors."""

__version__ = "0.1.0"
