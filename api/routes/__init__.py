"""
API Routes for the lead qualifier.
"""

from . import chat, config, leads

__all__ = ["chat", "config", "leads"]
