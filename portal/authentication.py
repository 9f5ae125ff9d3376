"""
Custom authentication backend for token-based auth.

Kept apart from the login views so that DRF can import the
authentication class during initialisation without pulling in view
modules.
"""
from __future__ import annotations

from rest_framework import authentication


class TokenAuthentication(authentication.TokenAuthentication):
    """Token authentication using the ``Token`` keyword.

    Exists to give the settings a stable import path and to allow later
    customisation.
    """

    keyword = 'Token'
