"""Account routes: registration, confirmation, login/logout, password recovery."""
from fastapi import APIRouter, Depends, Form, Request
from fastapi.responses import RedirectResponse

from app.config import Settings, get_settings
from app.dependencies import get_account_service
from app.exceptions import AccountError, DuplicateEmail, FormValidationError
from app.schemas.auth import ForgotPasswordForm, LoginForm, RegisterForm, ResetPasswordForm
from app.schemas.views import parse_form, render
from app.services.accounts import AccountService

router = APIRouter(prefix="/auth", tags=["auth"])

LOGIN_PAGE = "Log in"
REGISTER_PAGE = "Create account"
FORGOT_PAGE = "Recover your access to Bienes Raices"
RESET_PAGE = "Reset your password"


def _set_session_cookie(response: RedirectResponse, token: str, settings: Settings) -> None:
    response.set_cookie(
        settings.session_cookie_name,
        token,
        httponly=True,
        secure=settings.session_cookie_secure,
        samesite="lax",
        max_age=settings.session_expire_minutes * 60 if settings.session_expire_minutes > 0 else None,
    )


@router.get("/login")
def login_form():
    return render(LOGIN_PAGE)


@router.post("/login")
def login(
    request: Request,
    email: str = Form(""),
    password: str = Form(""),
    accounts: AccountService = Depends(get_account_service),
    settings: Settings = Depends(get_settings),
):
    try:
        form = parse_form(LoginForm, {"email": email, "password": password})
        token = accounts.login(form, request)
    except FormValidationError as e:
        return render(LOGIN_PAGE, status_code=400, errors=e.errors)
    except AccountError as e:
        return render(LOGIN_PAGE, status_code=400, errors=[{"msg": str(e)}])
    response = RedirectResponse("/mis-propiedades", status_code=302)
    _set_session_cookie(response, token, settings)
    return response


@router.get("/cerrar-sesion")
def logout(settings: Settings = Depends(get_settings)):
    """Drop the session cookie. The proof itself is stateless; nothing changes server-side."""
    response = RedirectResponse("/auth/login", status_code=302)
    response.delete_cookie(settings.session_cookie_name)
    return response


@router.get("/registro")
def register_form():
    return render(REGISTER_PAGE)


@router.post("/registro")
def register(
    request: Request,
    nombre: str = Form(""),
    email: str = Form(""),
    password: str = Form(""),
    repetir_password: str = Form(""),
    accounts: AccountService = Depends(get_account_service),
):
    submitted = {"nombre": nombre, "email": email, "password": password, "repetir_password": repetir_password}
    echo = {"nombre": nombre, "email": email}
    try:
        form = parse_form(RegisterForm, submitted, echo=("nombre", "email"))
        accounts.register(form, request)
    except FormValidationError as e:
        return render(REGISTER_PAGE, status_code=400, errors=e.errors, data=e.data)
    except DuplicateEmail as e:
        return render(REGISTER_PAGE, status_code=400, errors=[{"field": "email", "msg": str(e)}], data=echo)
    return render(
        "Account created",
        message="We sent you a confirmation email, follow the link to activate your account",
    )


@router.get("/confirmar/{token}")
def confirm(token: str, accounts: AccountService = Depends(get_account_service)):
    try:
        accounts.confirm(token)
    except AccountError as e:
        return render("Error confirming your account", status_code=400, message=str(e), error=True)
    return render("Account confirmed", message="The account was confirmed successfully")


@router.get("/olvide-password")
def forgot_password_form():
    return render(FORGOT_PAGE)


@router.post("/olvide-password")
def forgot_password(
    request: Request,
    email: str = Form(""),
    accounts: AccountService = Depends(get_account_service),
):
    try:
        form = parse_form(ForgotPasswordForm, {"email": email})
        accounts.forgot_password(form, request)
    except FormValidationError as e:
        return render(FORGOT_PAGE, status_code=400, errors=e.errors)
    except AccountError as e:
        return render(FORGOT_PAGE, status_code=400, errors=[{"field": "email", "msg": str(e)}])
    return render(RESET_PAGE, message="We sent you an email with the instructions")


@router.get("/olvide-password/{token}")
def check_reset_token(token: str, accounts: AccountService = Depends(get_account_service)):
    try:
        accounts.check_reset_token(token)
    except AccountError as e:
        return render(RESET_PAGE, status_code=400, message=str(e), error=True)
    return render(RESET_PAGE)


@router.post("/olvide-password/{token}")
def reset_password(
    token: str,
    password: str = Form(""),
    accounts: AccountService = Depends(get_account_service),
):
    try:
        form = parse_form(ResetPasswordForm, {"password": password})
        accounts.reset_password(token, form)
    except FormValidationError as e:
        return render(RESET_PAGE, status_code=400, errors=e.errors)
    except AccountError as e:
        return render(RESET_PAGE, status_code=400, message=str(e), error=True)
    return render("Password reset", message="The password was saved successfully")
