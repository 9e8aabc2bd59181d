"""Request dependencies: current user, role guard, AI client."""

from __future__ import annotations

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from eduportal.core import auth
from eduportal.db.profiles_repository import ProfileRecord
from eduportal.llm.client import LLMClient

bearer_scheme = HTTPBearer(auto_error=False)


def get_current_user(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
) -> ProfileRecord:
    """Resolve the bearer token to an active profile."""
    if credentials is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Autenticação necessária.",
            headers={"WWW-Authenticate": "Bearer"},
        )
    profile = auth.authenticate(credentials.credentials)
    if profile is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Sessão inválida ou expirada.",
            headers={"WWW-Authenticate": "Bearer"},
        )
    if profile.status != "active":
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Sua conta está inativa. Procure a administração.",
        )
    return profile


def require_admin(user: ProfileRecord = Depends(get_current_user)) -> ProfileRecord:
    if user.role != "admin":
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Acesso restrito a administradores.",
        )
    return user


def require_student(user: ProfileRecord = Depends(get_current_user)) -> ProfileRecord:
    if user.role != "student":
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Área exclusiva para alunos.",
        )
    return user


def get_llm_client() -> LLMClient | None:
    """AI client handed to core functions.

    None lets each operation build a client with its preferred model; tests
    override this dependency with a mock.
    """
    return None
