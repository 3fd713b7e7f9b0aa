import logging
from typing import Optional

from fastapi import Depends, Header, Request
from sqlalchemy.orm import Session

from formbuilder.core.exceptions import ForbiddenError, UnauthenticatedError
from formbuilder.core.security.auth import InvalidTokenError, PasswordHasher, TokenService
from formbuilder.crud.forms import get_form_model
from formbuilder.crud.users import get_user
from formbuilder.db.session import get_db
from formbuilder.models.form import Form
from formbuilder.schemas.user import CurrentUser

logger = logging.getLogger(__name__)


def get_token_service(request: Request) -> TokenService:
    return request.app.state.token_service


def get_password_hasher(request: Request) -> PasswordHasher:
    return request.app.state.password_hasher


def get_current_user(
    request: Request,
    authorization: Optional[str] = Header(None),
    tokens: TokenService = Depends(get_token_service),
    db: Session = Depends(get_db),
) -> CurrentUser:
    """
    Resolve the bearer token to a stored user.

    The header must read ``Bearer <token>``; the token must verify and its
    user must still exist. The identity is also put on ``request.state.user``.
    """
    if not authorization or not authorization.startswith("Bearer "):
        raise UnauthenticatedError("Authentication required. Please log in.")

    token = authorization.split(" ")[1]
    if not token:
        raise UnauthenticatedError("Authentication token missing.")

    try:
        payload = tokens.verify(token)
    except InvalidTokenError as e:
        logger.warning(f"Token rejected: {e}")
        raise UnauthenticatedError("Invalid or expired token.")

    user = get_user(db, payload.id)
    if user is None:
        raise UnauthenticatedError("User no longer exists.")

    current_user = CurrentUser.model_validate(user)
    request.state.user = current_user
    return current_user


def get_owned_form(
    form_id: str,
    current_user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> Form:
    form = get_form_model(db, form_id)
    if form.user_id != current_user.id:
        raise ForbiddenError("You do not have permission to access this form")
    return form
