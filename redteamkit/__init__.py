"""Model cloud attack techniques, track their lifecycle, and generate their documentation."""

__version__ = "0.1.0"