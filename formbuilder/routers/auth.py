from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from formbuilder.core.exceptions import UnauthenticatedError
from formbuilder.core.security.auth import PasswordHasher, TokenService
from formbuilder.crud.users import authenticate_user, create_user
from formbuilder.db.session import get_db
from formbuilder.dependencies.auth import get_current_user, get_password_hasher, get_token_service
from formbuilder.schemas.common import success_response
from formbuilder.schemas.user import CurrentUser, LoginRequest, RegisterRequest, UserOut

router = APIRouter(prefix="/auth", tags=["authentication"])


@router.post("/register", status_code=status.HTTP_201_CREATED)
def register(
    request: RegisterRequest,
    db: Session = Depends(get_db),
    tokens: TokenService = Depends(get_token_service),
    hasher: PasswordHasher = Depends(get_password_hasher),
):
    new_user = create_user(db, request, hasher)
    token = tokens.issue(new_user.id, new_user.email)

    return success_response(
        {
            "user": UserOut.model_validate(new_user).model_dump(mode="json"),
            "token": token,
        },
        message="User registered successfully",
        status_code=status.HTTP_201_CREATED,
    )


@router.post("/login")
def login(
    request: LoginRequest,
    db: Session = Depends(get_db),
    tokens: TokenService = Depends(get_token_service),
    hasher: PasswordHasher = Depends(get_password_hasher),
):
    user = authenticate_user(db, request.email, request.password, hasher)

    # Verify credentials
    if not user:
        raise UnauthenticatedError("Invalid credentials")

    token = tokens.issue(user.id, user.email)

    return success_response(
        {
            "user": {
                "id": user.id,
                "username": user.username,
                "email": user.email,
            },
            "token": token,
        },
        message="Login successful",
    )


@router.post("/logout")
def logout(current_user: CurrentUser = Depends(get_current_user)):
    # Tokens are stateless, the client discards its copy
    return success_response(message="Logged out successfully")
