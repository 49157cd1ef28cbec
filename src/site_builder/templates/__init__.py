"""
Site Builder Templates Package

Provides HTML fragment template loading and rendering.
"""

from .loader import TemplateLoader

__all__ = ["TemplateLoader"]
