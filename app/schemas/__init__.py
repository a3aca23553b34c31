from app.schemas.auth import ForgotPasswordForm, LoginForm, RegisterForm, ResetPasswordForm, UserPublic
from app.schemas.listing import ListingForm, ListingResponse, MessageForm, MessageResponse
from app.schemas.views import ViewResponse, form_errors
