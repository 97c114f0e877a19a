"""
Authentication routes (register, login, logout)
"""
from fastapi import APIRouter, Depends, Request
from pydantic import BaseModel
from sqlalchemy.orm import Session

from budgetbook.api.deps import get_db, get_current_user, login_session, logout_session
from budgetbook.application.accounts import RegisterUserUseCase, AuthenticateUseCase
from budgetbook.infrastructure.db.models import User


router = APIRouter(prefix="/api/v1/auth", tags=["auth"])


# === Request/Response models ===

class RegisterRequest(BaseModel):
    email: str
    password: str
    name: str | None = None


class LoginRequest(BaseModel):
    email: str
    password: str


class UserResponse(BaseModel):
    id: str
    email: str


def _user_response(user: User) -> UserResponse:
    return UserResponse(id=str(user.id), email=user.email)


# === Endpoints ===

@router.post("/register", response_model=UserResponse, status_code=201)
def register(req: RegisterRequest, db: Session = Depends(get_db)):
    """Регистрация по email/паролю"""
    user = RegisterUserUseCase(db).execute(
        email=req.email,
        password=req.password,
        name=req.name,
    )
    return _user_response(user)


@router.post("/login", response_model=UserResponse)
def login(request: Request, req: LoginRequest, db: Session = Depends(get_db)):
    """Вход: проверка пароля и запись user_id в session cookie"""
    user = AuthenticateUseCase(db).execute(req.email, req.password)
    login_session(request, user)
    return _user_response(user)


@router.post("/logout")
def logout(request: Request):
    """Выход из системы"""
    logout_session(request)
    return {"success": True}


@router.get("/me", response_model=UserResponse)
def me(user: User = Depends(get_current_user)):
    return _user_response(user)
