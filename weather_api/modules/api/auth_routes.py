"""
Authentication endpoints: register, login, logout.

These routes are public; they are how a client obtains and gives up an
authentication key.
"""

from typing import Dict, Optional

from fastapi import APIRouter, Body, Depends, Request

from weather_api.modules.api.dependencies import get_authenticator, store_operation
from weather_api.modules.api.models import Credentials, LogoutRequest, UserResponse
from weather_api.modules.auth import Authenticator
from weather_api.modules.middleware import DEFAULT_HEADER


def create_auth_router() -> APIRouter:
    """
    Create the authentication router.

    Returns:
        FastAPI router mounted at /auth
    """
    router = APIRouter(prefix="/auth", tags=["Authentication"])

    @router.post("/register")
    async def register(
        credentials: Credentials,
        authenticator: Authenticator = Depends(get_authenticator),
    ) -> Dict:
        """
        Register a new user.

        The role is always "student"; teachers promote users afterwards.

        Returns:
            200: Registration successful
            409: Email already registered
        """
        with store_operation("Registration failed."):
            record = await authenticator.register(credentials.email, credentials.password)

        return {
            "status": 200,
            "message": "Registration successful.",
            "user": UserResponse.from_record(record),
        }

    @router.post("/login")
    async def login(
        credentials: Credentials,
        authenticator: Authenticator = Depends(get_authenticator),
    ) -> Dict:
        """
        Exchange an email and password for an authentication key.

        Send the key in the X-AUTH-KEY header on protected routes.

        Returns:
            200: Logged in, with authenticationKey
            401: Invalid credentials
        """
        with store_operation("Login failed"):
            token = await authenticator.authenticate(credentials.email, credentials.password)

        return {
            "status": 200,
            "message": "User logged in",
            "authenticationKey": token,
        }

    @router.post("/logout")
    async def logout(
        request: Request,
        payload: Optional[LogoutRequest] = Body(None),
        authenticator: Authenticator = Depends(get_authenticator),
    ) -> Dict:
        """
        Clear an authentication key.

        The key is read from the body (authenticationKey) and falls back
        to the authentication header.

        Returns:
            200: Logged out
            404: No user holds the key
        """
        token = payload.authentication_key if payload else None
        if not token:
            token = request.headers.get(getattr(request.app.state, "auth_header", DEFAULT_HEADER))

        with store_operation("Failed to logout user."):
            await authenticator.invalidate(token)

        return {"status": 200, "message": "User has been logged out."}

    return router
