"""Token-gated file access gateway."""

__version__ = "1.0.0"
