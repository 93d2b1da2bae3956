"""SirenOOP design architect service."""

__version__ = "0.1.0"
