"""
MATLYNX - Construction Materials Marketplace

Dealers list materials with price, quantity and unit; contractors browse
active listings and contact dealers.

All state lives in a flat key-value store under fixed keys:
- Users collection
- Session pointer (one copy of the logged-in User per session key)
- Profiles collection
- Materials collection

Navigation is decided by the route gate, which composes the session and
the profile completeness of the logged-in user.
"""

__version__ = "1.0.0"
