"""Account forms and the password-stripped user projection."""
from email_validator import validate_email, EmailNotValidError
from pydantic import BaseModel, Field, ValidationInfo, field_validator

PASSWORD_MIN_LENGTH = 6
NAME_MAX_LENGTH = 60


def _normalize_email(value: str | None) -> str:
    s = (value or "").strip()
    try:
        return validate_email(s, check_deliverability=False).normalized.lower()
    except EmailNotValidError:
        raise ValueError("That does not look like an email")


def _check_password_length(value: str | None) -> str:
    if len(value or "") < PASSWORD_MIN_LENGTH:
        raise ValueError(f"The password must be at least {PASSWORD_MIN_LENGTH} characters")
    return value


class _Form(BaseModel):
    class Config:
        populate_by_name = True


class RegisterForm(_Form):
    name: str = Field("", alias="nombre")
    email: str = ""
    password: str = ""
    repeat_password: str = Field("", alias="repetir_password")

    @field_validator("name")
    @classmethod
    def name_required(cls, v: str) -> str:
        v = (v or "").strip()
        if not v:
            raise ValueError("The name is required")
        if len(v) > NAME_MAX_LENGTH:
            raise ValueError("The name is too long")
        return v

    @field_validator("email")
    @classmethod
    def email_valid(cls, v: str) -> str:
        return _normalize_email(v)

    @field_validator("password")
    @classmethod
    def password_length(cls, v: str) -> str:
        return _check_password_length(v)

    @field_validator("repeat_password")
    @classmethod
    def passwords_match(cls, v: str, info: ValidationInfo) -> str:
        if v != info.data.get("password"):
            raise ValueError("The passwords do not match")
        return v


class LoginForm(_Form):
    email: str = ""
    password: str = ""

    @field_validator("email")
    @classmethod
    def email_valid(cls, v: str) -> str:
        try:
            return _normalize_email(v)
        except ValueError:
            raise ValueError("The email is required")

    @field_validator("password")
    @classmethod
    def password_required(cls, v: str) -> str:
        if not v:
            raise ValueError("The password is required")
        return v


class ForgotPasswordForm(_Form):
    email: str = ""

    @field_validator("email")
    @classmethod
    def email_valid(cls, v: str) -> str:
        return _normalize_email(v)


class ResetPasswordForm(_Form):
    password: str = ""

    @field_validator("password")
    @classmethod
    def password_length(cls, v: str) -> str:
        return _check_password_length(v)


class UserPublic(BaseModel):
    """Read projection of User without the password hash."""
    id: int
    name: str
    email: str
    confirmed: bool = False

    class Config:
        from_attributes = True
