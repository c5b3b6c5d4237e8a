"""
Story Mode service - interactive lecture learning pathways.
"""

__version__ = "0.1.0"
