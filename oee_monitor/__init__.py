"""
OEE Monitor - shift-window resolution and OEE accounting engine.
"""

__version__ = "1.0.0"
