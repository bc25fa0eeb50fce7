"""Practice Board - a password-protected board of songs being learned."""

__version__ = "1.0.0"
