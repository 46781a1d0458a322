"""
API Server Example - Serve the auth routes with uvicorn.

    uvicorn examples.api_server:app --reload
"""

from brew_auth import AuthClient
from brew_auth.adapters import RedisCredentialStore
from brew_auth.api import create_app

app = create_app(AuthClient.from_settings(RedisCredentialStore()))
