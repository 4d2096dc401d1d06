"""
Core configuration for factorauth.
"""

from .config import Config

__all__ = ['Config']
