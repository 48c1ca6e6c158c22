"""
Version information for the brag list builder.

This file is the single source of truth for version numbers.
Both the library and the HTTP service import from here.
"""

__version__ = "0.1.0"
__version_info__ = (0, 1, 0)
