"""
Auth routes: accounts, sessions and password reset.
"""

from typing import Iterable, Optional

from fastapi import APIRouter, Depends, Request, Response
from pydantic import BaseModel

from brew_auth.api.deps import get_auth_client, get_principal, require
from brew_auth.domain.session import SessionClaims
from brew_auth.ports.policy_port import Capability
from brew_auth.sdk.client import AuthClient
from brew_auth.sdk.cookies import CookieSpec

router = APIRouter(prefix="/auth", tags=["auth"])


# ─── Schemas ────────────────────────────────────────────

# Fields default to "" so missing input surfaces as the client's own
# InvalidRequestError message rather than a 422.


class RegisterRequest(BaseModel):
    email: str = ""
    name: str = ""
    password: str = ""
    phone: str = ""


class LoginRequest(BaseModel):
    email: str = ""
    password: str = ""
    login_type: Optional[str] = None


class ProfileUpdateRequest(BaseModel):
    name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None


class ChangePasswordRequest(BaseModel):
    current_password: str = ""
    new_password: str = ""


class ForgotPasswordRequest(BaseModel):
    email: str = ""


class ResetPasswordRequest(BaseModel):
    token: str = ""
    password: str = ""


def apply_cookies(response: Response, cookies: Iterable[CookieSpec]) -> None:
    """Copy framework-neutral cookie instructions onto a response."""
    for cookie in cookies:
        if cookie.is_deletion:
            response.delete_cookie(
                cookie.name,
                path=cookie.path,
                secure=cookie.secure,
                httponly=cookie.http_only,
                samesite=cookie.same_site,
            )
        else:
            response.set_cookie(
                cookie.name,
                cookie.value,
                max_age=cookie.max_age,
                path=cookie.path,
                secure=cookie.secure,
                httponly=cookie.http_only,
                samesite=cookie.same_site,
            )


# ─── Accounts & sessions ────────────────────────────────


@router.post("/register", status_code=201)
def register(body: RegisterRequest, client: AuthClient = Depends(get_auth_client)):
    """Create a member account."""
    user = client.register(body.email, body.name, body.password, body.phone)
    return {"success": True, "user": user.to_dict()}


@router.post("/login")
def login(
    body: LoginRequest,
    response: Response,
    client: AuthClient = Depends(get_auth_client),
):
    """Verify credentials and set the role's carrier cookie."""
    result = client.login(body.email, body.password, login_type=body.login_type)
    apply_cookies(response, result.cookies)
    return {"success": True, "user": result.user.to_dict()}


@router.post("/logout")
def logout(response: Response, client: AuthClient = Depends(get_auth_client)):
    apply_cookies(response, client.logout())
    return {"success": True}


@router.get("/clear-all")
def clear_all(response: Response, client: AuthClient = Depends(get_auth_client)):
    """Clear every carrier, including ones left under old paths."""
    apply_cookies(response, client.clear_all())
    return {"success": True}


@router.get("/me")
def me(
    principal: SessionClaims = Depends(require(Capability.authenticated())),
    client: AuthClient = Depends(get_auth_client),
):
    return {"user": client.current_user(principal).to_dict()}


@router.patch("/profile")
def update_profile(
    body: ProfileUpdateRequest,
    request: Request,
    response: Response,
    client: AuthClient = Depends(get_auth_client),
):
    """Update name, email or phone and re-issue the session in the same carrier."""
    result = client.update_profile(
        request.cookies, name=body.name, email=body.email, phone=body.phone
    )
    apply_cookies(response, [result.cookie])
    return {"success": True, "user": result.user.to_dict()}


@router.post("/change-password")
def change_password(
    body: ChangePasswordRequest,
    principal: Optional[SessionClaims] = Depends(get_principal),
    client: AuthClient = Depends(get_auth_client),
):
    client.change_password(principal, body.current_password, body.new_password)
    return {"success": True}


# ─── Password reset ─────────────────────────────────────


@router.post("/forgot-password")
def forgot_password(body: ForgotPasswordRequest, client: AuthClient = Depends(get_auth_client)):
    """Start a reset. The response is the same whether or not the email exists."""
    return client.request_reset(body.email).to_dict()


@router.post("/reset-password")
def reset_password(body: ResetPasswordRequest, client: AuthClient = Depends(get_auth_client)):
    client.redeem_reset(body.token, body.password)
    return {"success": True, "message": "Password has been reset"}
