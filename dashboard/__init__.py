"""
Web dashboard for the greenhouse API.
"""

from .main import create_app

__all__ = ["create_app"]
