"""Account lifecycle: register, confirm, login, forgot/reset password.

Confirmation and reset share User.token, so issuing a reset token invalidates any
earlier link of either kind.
"""
import logging

from fastapi import Request
from sqlalchemy.orm import Session

from app.exceptions import InvalidToken, LoginFailed, UnknownEmail
from app.schemas.auth import ForgotPasswordForm, LoginForm, RegisterForm, ResetPasswordForm, UserPublic
from app.services.audit_log import create_log, request_context, CATEGORY_ACCOUNT, CATEGORY_FAILED_ATTEMPT
from app.services.auth import SessionProofService
from app.services.credentials import CredentialStore

log = logging.getLogger("uvicorn.error")

LOGIN_INVALID_MESSAGE = "Invalid email or password"
LOGIN_UNCONFIRMED_MESSAGE = "Your account has not been confirmed"


class AccountService:
    def __init__(self, db: Session, store: CredentialStore, proofs: SessionProofService, notifier):
        self.db = db
        self.store = store
        self.proofs = proofs
        self.notifier = notifier

    def register(self, form: RegisterForm, request: Request | None = None) -> UserPublic:
        """Create an unconfirmed user and mail the confirmation link. Never logs in."""
        user = self.store.create(form.email, form.password, form.name)
        create_log(
            self.db,
            CATEGORY_ACCOUNT,
            "Account registered",
            f"User {user.email} registered (id={user.id}); awaiting confirmation.",
            actor_user_id=user.id,
            actor_email=user.email,
            **request_context(request),
        )
        self.db.commit()
        sent = self.notifier.send_confirmation(user.name, user.email, self.store.pending_token(user))
        if not sent:
            log.warning("Confirmation email not sent to %s (user id=%s)", user.email, user.id)
        return user

    def confirm(self, token: str) -> UserPublic:
        user = self.store.find_by_token(token)
        if not user:
            raise InvalidToken("There was an error confirming your account, try again")
        user = self.store.confirm(user)
        create_log(
            self.db,
            CATEGORY_ACCOUNT,
            "Account confirmed",
            f"User {user.email} confirmed their account.",
            actor_user_id=user.id,
            actor_email=user.email,
        )
        self.db.commit()
        return user

    def login(self, form: LoginForm, request: Request | None = None) -> str:
        """Checks, in order: user exists, user confirmed, password matches. Returns the session proof."""
        user = self.store.find_by_email(form.email)
        if not user:
            self._log_failed_login(form.email, "unknown_email", request)
            raise LoginFailed(LOGIN_INVALID_MESSAGE)
        if not user.confirmed:
            self._log_failed_login(form.email, "unconfirmed", request, user_id=user.id)
            raise LoginFailed(LOGIN_UNCONFIRMED_MESSAGE)
        if not self.store.verify_password(user, form.password):
            self._log_failed_login(form.email, "wrong_password", request, user_id=user.id)
            raise LoginFailed(LOGIN_INVALID_MESSAGE)
        return self.proofs.issue(user.id, user.name)

    def _log_failed_login(self, email: str, reason: str, request: Request | None, user_id: int | None = None) -> None:
        create_log(
            self.db,
            CATEGORY_FAILED_ATTEMPT,
            "Login failed",
            f"Failed login attempt for email: {email}.",
            actor_user_id=user_id,
            actor_email=email,
            meta={"reason": reason},
            **request_context(request),
        )
        self.db.commit()

    def forgot_password(self, form: ForgotPasswordForm, request: Request | None = None) -> None:
        user = self.store.find_by_email(form.email)
        if not user:
            raise UnknownEmail("The email does not belong to any user")
        token = self.store.issue_reset_token(user)
        create_log(
            self.db,
            CATEGORY_ACCOUNT,
            "Password reset requested",
            f"Reset token issued for {user.email}.",
            actor_user_id=user.id,
            actor_email=user.email,
            **request_context(request),
        )
        self.db.commit()
        sent = self.notifier.send_password_reset(user.name, user.email, token)
        if not sent:
            log.warning("Password reset email not sent to %s (user id=%s)", user.email, user.id)

    def check_reset_token(self, token: str) -> UserPublic:
        user = self.store.find_by_token(token)
        if not user:
            raise InvalidToken("There was an error validating your information, try again")
        return user

    def reset_password(self, token: str, form: ResetPasswordForm) -> UserPublic:
        # The form carries no identity besides the token, so look it up again
        user = self.check_reset_token(token)
        self.store.set_password(user, form.password)
        create_log(
            self.db,
            CATEGORY_ACCOUNT,
            "Password reset",
            f"Password changed for {user.email}.",
            actor_user_id=user.id,
            actor_email=user.email,
        )
        self.db.commit()
        return user

