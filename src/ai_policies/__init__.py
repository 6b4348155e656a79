"""
ai-policies - composable AI assistant policy documents

Composes versioned policy partials from many packages into one generated
instruction file per provider, preserving hand-edited blocks across
regenerations.
"""

__version__ = "2.0.0"
__all__ = ["__version__"]
