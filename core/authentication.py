"""
Token authentication for API clients.

The browser front end authenticates with the session cookie set by
``/api/login``; scripts and the smoke test send the DRF token returned
by the same endpoint.  Keeping the class here gives settings a stable
import path that does not pull in any views.
"""
from __future__ import annotations

from rest_framework import authentication


class TokenAuthentication(authentication.TokenAuthentication):
    """Token authentication using the ``Token`` keyword.

    Inactive users are rejected by DRF's base implementation, so a
    deactivated account loses API access without deleting its token.
    """

    keyword = 'Token'
