"""Voice translation engine: speech in, translated text and speech out."""

__version__ = "1.0.0"
