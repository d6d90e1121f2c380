from marshmallow import Schema, fields, pre_load, validates_schema, ValidationError, validate

_not_blank = validate.Length(min=1, error="Field cannot be empty.")


def _norm_identity(v):
    return v.strip().lower() if isinstance(v, str) else v


def _strip(v):
    return v.strip() if isinstance(v, str) else v


class UserRegisterSchema(Schema):
    username = fields.String(required=True, validate=_not_blank)
    email = fields.Email(required=True)
    full_name = fields.String(required=True, validate=_not_blank)
    password = fields.String(required=True, load_only=True, validate=_not_blank)

    @pre_load
    def normalize(self, data, **kwargs):
        if not isinstance(data, dict):
            return data
        data = dict(data)
        for key in ("username", "email"):
            if key in data:
                data[key] = _norm_identity(data[key])
        if "full_name" in data:
            data["full_name"] = _strip(data["full_name"])
        return data


class UserLoginSchema(Schema):
    username = fields.String(load_default=None)
    email = fields.String(load_default=None)
    password = fields.String(required=True, load_only=True, validate=_not_blank)

    @validates_schema
    def require_identifier(self, data, **kwargs):
        if not (_strip(data.get("username")) or _strip(data.get("email"))):
            raise ValidationError("username or email is required", field_name="username")


class ChangePasswordSchema(Schema):
    old_password = fields.String(required=True, load_only=True, validate=_not_blank)
    new_password = fields.String(required=True, load_only=True, validate=_not_blank)


class UserUpdateSchema(Schema):
    full_name = fields.String(allow_none=True)
    email = fields.Email(allow_none=True)

    @pre_load
    def normalize(self, data, **kwargs):
        if not isinstance(data, dict):
            return data
        data = dict(data)
        if "email" in data:
            data["email"] = _norm_identity(data["email"])
        if "full_name" in data:
            data["full_name"] = _strip(data["full_name"])
        return data

    @validates_schema
    def require_one(self, data, **kwargs):
        if not (data.get("full_name") or data.get("email")):
            raise ValidationError("full_name or email is required")


class UserOutSchema(Schema):
    """Outward representation of a principal; never carries credentials."""
    id = fields.String(allow_none=False)
    username = fields.String()
    email = fields.String()
    full_name = fields.String()
    avatar = fields.String()
    cover_image = fields.String(allow_none=True)
    created_at = fields.DateTime(allow_none=True)
    updated_at = fields.DateTime(allow_none=True)
