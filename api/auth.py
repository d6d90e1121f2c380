"""
Authentication blueprint:
- POST /auth/register        (multipart: fields + avatar, optional cover_image)
- POST /auth/login
- POST /auth/refresh
- POST /auth/logout          (login required)
- POST /auth/change-password (login required)

Tokens:
- short-lived access token and longer-lived refresh token, JWTs signed with
  independent secrets
- the refresh token is stored on the user (one live session per user) and is
  rotated on every refresh; a superseded token is rejected and revokes the session
- both tokens are set as http-only cookies and returned in the body
"""
from __future__ import annotations

from flask import Blueprint, request, jsonify, g, current_app

from api.errors import service_error_response
from models.schemas.user import UserRegisterSchema, UserLoginSchema, ChangePasswordSchema
from services.results import TokenPair
from utils.decorators import login_required, ACCESS_COOKIE, REFRESH_COOKIE

bp = Blueprint("auth", __name__, url_prefix="/auth")

user_register_schema = UserRegisterSchema()
user_login_schema = UserLoginSchema()
change_password_schema = ChangePasswordSchema()


def _service():
    return current_app.extensions["session_service"]


def _cookie_options() -> dict:
    return {
        "httponly": True,
        "secure": current_app.config.get("AUTH_COOKIE_SECURE", True),
        "samesite": current_app.config.get("AUTH_COOKIE_SAMESITE", "Strict"),
    }


def set_session_cookies(response, tokens: TokenPair):
    opts = _cookie_options()
    response.set_cookie(
        ACCESS_COOKIE, tokens.access_token,
        max_age=int(current_app.config["ACCESS_TOKEN_EXPIRES"].total_seconds()), **opts
    )
    response.set_cookie(
        REFRESH_COOKIE, tokens.refresh_token,
        max_age=int(current_app.config["REFRESH_TOKEN_EXPIRES"].total_seconds()), **opts
    )
    return response


def clear_session_cookies(response):
    opts = _cookie_options()
    response.delete_cookie(ACCESS_COOKIE, **opts)
    response.delete_cookie(REFRESH_COOKIE, **opts)
    return response


@bp.post("/register")
def register():
    """
    Register a new user.
    ---
    tags:
      - Auth
    consumes:
      - multipart/form-data
    parameters:
      - { in: formData, name: username, type: string, required: true }
      - { in: formData, name: email, type: string, required: true }
      - { in: formData, name: full_name, type: string, required: true }
      - { in: formData, name: password, type: string, required: true }
      - { in: formData, name: avatar, type: file, required: true }
      - { in: formData, name: cover_image, type: file, required: false }
    responses:
      201:
        description: Created
      400:
        description: Validation error
      409:
        description: Username or email already registered
    """
    data = user_register_schema.load(request.form.to_dict())
    result = _service().register(
        username=data["username"],
        email=data["email"],
        full_name=data["full_name"],
        password=data["password"],
        avatar=request.files.get("avatar"),
        cover_image=request.files.get("cover_image"),
    )
    if not result.ok:
        return service_error_response(result.error)

    return jsonify(
        {
            "data": result.value,
            "message": "User registered successfully"
        }
    ), 201


@bp.post("/login")
def login():
    """
    Login with username or email: returns access_token and refresh_token
    ---
    tags:
      - Auth
    consumes:
      - application/json
    parameters:
      -  in: body
         name: body
         schema:
           type: object
           properties:
             username: { type: string }
             email: { type: string }
             password: { type: string }
    responses:
      200:
        description: OK (returns tokens and sets cookies)
      401:
        description: Invalid credentials
      404:
        description: User does not exist
    """
    payload = request.get_json(silent=True) or {}
    data = user_login_schema.load(payload)
    result = _service().login(data["password"], username=data.get("username"), email=data.get("email"))
    if not result.ok:
        return service_error_response(result.error)

    login_result = result.value
    response = jsonify(
        {
            "data": {
                "user": login_result.user,
                "access_token": login_result.access_token,
                "refresh_token": login_result.refresh_token,
                "token_type": "bearer",
                "expires_in": int(current_app.config["ACCESS_TOKEN_EXPIRES"].total_seconds()),
            },
            "message": "User logged in successfully"
        }
    )
    return set_session_cookies(response, login_result.tokens), 200


@bp.post("/refresh")
def refresh():
    """
    Use the refresh token (cookie or body) to obtain a new token pair (rotation)
    ---
    tags:
      - Auth
    consumes:
      - application/json
    parameters:
      -  in: body
         name: body
         schema:
           type: object
           properties:
             refresh_token: { type: string }
    responses:
      200:
        description: OK (new token pair)
      401:
        description: Missing, invalid, expired or already used refresh token
    """
    payload = request.get_json(silent=True)
    token = request.cookies.get(REFRESH_COOKIE)
    if not token and isinstance(payload, dict):
        # a non-string body value counts as no token
        body_token = payload.get("refresh_token")
        token = body_token if isinstance(body_token, str) else None

    result = _service().refresh(token)
    if not result.ok:
        return service_error_response(result.error)

    pair = result.value
    response = jsonify(
        {
            "data": {
                "access_token": pair.access_token,
                "refresh_token": pair.refresh_token,
                "token_type": "bearer",
                "expires_in": int(current_app.config["ACCESS_TOKEN_EXPIRES"].total_seconds()),
            },
            "message": "Access token refreshed"
        }
    )
    return set_session_cookies(response, pair), 200


@bp.post("/logout")
@login_required()
def logout():
    """
    Logout: revokes the stored refresh token and clears both cookies
    ---
    tags:
      - Auth
    security:
      - Bearer: []
    responses:
      200:
        description: Logged out
      401:
        description: Unauthorized
    """
    result = _service().logout(g.current_user["id"])
    if not result.ok:
        return service_error_response(result.error)

    response = jsonify({"data": {}, "message": "User logged out"})
    return clear_session_cookies(response), 200


@bp.post("/change-password")
@login_required()
def change_password():
    """
    Change password; every refresh token issued before the change is revoked
    ---
    tags:
      - Auth
    security:
      - Bearer: []
    consumes:
      - application/json
    parameters:
      -  in: body
         name: body
         schema:
           type: object
           properties:
             old_password: { type: string }
             new_password: { type: string }
    responses:
      200:
        description: Password changed
      401:
        description: Invalid old password or unauthorized
    """
    payload = request.get_json(silent=True) or {}
    data = change_password_schema.load(payload)
    result = _service().change_password(g.current_user["id"], data["old_password"], data["new_password"])
    if not result.ok:
        return service_error_response(result.error)

    response = jsonify({"data": {}, "message": "Password changed successfully"})
    # the stored refresh token is gone, so drop the stale cookie too
    response.delete_cookie(REFRESH_COOKIE, **_cookie_options())
    return response, 200
