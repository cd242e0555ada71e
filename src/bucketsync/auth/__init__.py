"""Public auth exports for bucketsync."""

from __future__ import annotations

from .auth_info import AuthInfo
from .identity import UserIdentity
from .oauth_client import OAuthClient

__all__ = ["AuthInfo", "OAuthClient", "UserIdentity"]
