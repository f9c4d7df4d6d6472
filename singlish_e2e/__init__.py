"""End-to-end checks for a hosted Singlish to Sinhala transliteration page."""

__version__ = "0.1.0"
