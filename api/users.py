from __future__ import annotations

from flask import Blueprint, request, jsonify, g, current_app

from api.errors import service_error_response
from models.schemas.user import UserUpdateSchema
from utils.decorators import login_required

bp = Blueprint("users", __name__)

user_update_schema = UserUpdateSchema()


def _service():
    return current_app.extensions["session_service"]


def _respond(result, message: str):
    if not result.ok:
        return service_error_response(result.error)
    return jsonify(
        {
            "data": result.value,
            "message": message
        }
    ), 200


@bp.get("/users/me")
@login_required()
def me():
    """
    Get current user info.
    ---
    tags:
      - Users
    security:
      - Bearer: []
    responses:
      200:
        description: OK
      401:
        description: Unauthorized
    """
    return jsonify(
        {
            "data": g.current_user,
            "message": "Current user fetched successfully"
        }
    ), 200


@bp.patch("/users/me")
@login_required()
def update_account():
    """
    Update full name and/or email of the current user
    ---
    tags:
      - Users
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
             full_name: { type: string }
             email: { type: string }
    responses:
      200: { description: OK }
      400: { description: Validation error }
      409: { description: Email already registered }
    """
    payload = request.get_json(silent=True) or {}
    data = user_update_schema.load(payload)
    result = _service().update_account(
        g.current_user["id"], full_name=data.get("full_name"), email=data.get("email")
    )
    return _respond(result, "Account details updated successfully")


@bp.patch("/users/me/avatar")
@login_required()
def update_avatar():
    """
    Replace the avatar of the current user
    ---
    tags:
      - Users
    security:
      - Bearer: []
    consumes:
      - multipart/form-data
    parameters:
      - { in: formData, name: avatar, type: file, required: true }
    responses:
      200: { description: OK }
      400: { description: Missing file or upload failed }
    """
    result = _service().update_avatar(g.current_user["id"], request.files.get("avatar"))
    return _respond(result, "Avatar updated successfully")


@bp.patch("/users/me/cover-image")
@login_required()
def update_cover_image():
    """
    Replace the cover image of the current user
    ---
    tags:
      - Users
    security:
      - Bearer: []
    consumes:
      - multipart/form-data
    parameters:
      - { in: formData, name: cover_image, type: file, required: true }
    responses:
      200: { description: OK }
      400: { description: Missing file or upload failed }
    """
    result = _service().update_cover_image(g.current_user["id"], request.files.get("cover_image"))
    return _respond(result, "Cover image updated successfully")
