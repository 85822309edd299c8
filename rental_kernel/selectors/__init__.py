"""Selectors for the rental kernel (read side)."""

from rental_kernel.selectors.base import BaseSelector, last_issued_sequence

__all__ = ["BaseSelector", "last_issued_sequence"]
