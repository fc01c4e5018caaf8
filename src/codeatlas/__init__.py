"""CodeAtlas: multi-language source analysis."""

__version__ = "0.1.0"
