"""View descriptors returned where the site would render a page."""
from typing import Any, TypeVar
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ValidationError

from app.exceptions import FormValidationError

FormT = TypeVar("FormT", bound=BaseModel)


class FieldError(BaseModel):
    field: str | None = None
    msg: str


class ViewResponse(BaseModel):
    page: str
    message: str | None = None
    error: bool = False
    errors: list[FieldError] = []
    data: dict[str, Any] | None = None


def form_errors(exc: ValidationError) -> list[dict]:
    """Flatten pydantic errors into [{"field", "msg"}] using the form (alias) names."""
    out = []
    for err in exc.errors():
        loc = err.get("loc") or ()
        field = str(loc[-1]) if loc else None
        ctx_error = (err.get("ctx") or {}).get("error")
        # Custom validators raise ValueError("..."); show that text, not pydantic's prefix
        msg = str(ctx_error) if ctx_error else err.get("msg", "Invalid value")
        out.append({"field": field, "msg": msg})
    return out


def parse_form(model: type[FormT], data: dict[str, Any], echo: tuple[str, ...] = ()) -> FormT:
    """Validate submitted form fields; raises FormValidationError with every field error.
    Fields named in `echo` are sent back so the form can be re-filled."""
    try:
        return model.model_validate(data)
    except ValidationError as e:
        kept = {k: data.get(k) for k in echo} if echo else None
        raise FormValidationError(form_errors(e), data=kept) from e


def render(page: str, *, status_code: int = 200, message: str | None = None, error: bool = False,
           errors: list[dict] | None = None, data: dict[str, Any] | None = None) -> JSONResponse:
    view = ViewResponse(page=page, message=message, error=error, errors=errors or [], data=data)
    return JSONResponse(status_code=status_code, content=view.model_dump())
