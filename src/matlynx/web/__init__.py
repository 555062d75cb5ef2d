"""
Web surface.

FastAPI app with cookie sessions; every page goes through the route gate.
"""

from matlynx.web.app import create_app

__all__ = ["create_app"]
