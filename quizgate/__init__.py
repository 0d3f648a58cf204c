"""Client-side quiz randomization, attempt eligibility, and lesson gating."""

__version__ = "0.1.0"
