"""
===============================================================================
TARJETA CRC — rentalhub/api/auth_routes.py (Autenticación y recuperación)
===============================================================================

Responsabilidades:
  - login/logout/me con JWT (header Bearer + cookie httpOnly).
  - forgot-password / reset-password (OTP o token de link de email).
  - Medir intentos de login y emitir auditoría best-effort.

Patrones aplicados:
  - Adapter / Presentation Layer: traduce HTTP ↔ identidad/casos de uso.
  - Fail-safe security: las excepciones de auth se propagan al handler
    central (api/exception_handlers.py), que responde 401/403.

Colaboradores:
  - identity.auth_users: authenticate_user, create_access_token, require_user
  - application.usecases.auth: RequestPasswordResetUseCase, ResetPasswordUseCase
  - interfaces.api.http.error_mapping.raise_reset_password_error
===============================================================================
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Response
from pydantic import BaseModel, Field, field_validator

from ..application.usecases import (
    RequestPasswordResetUseCase,
    ResetPasswordInput,
    ResetPasswordUseCase,
)
from ..audit import emit_audit_event
from ..container import (
    get_audit_repository,
    get_request_password_reset_use_case,
    get_reset_password_use_case,
)
from ..crosscutting.error_responses import OPENAPI_ERROR_RESPONSES
from ..crosscutting.exceptions import AccountInactive, InvalidCredentials
from ..crosscutting.metrics import record_login_attempt
from ..domain.repositories import AuditEventRepository
from ..identity.auth_users import (
    authenticate_user,
    create_access_token,
    get_auth_settings,
    require_user,
)
from ..identity.users import User
from ..interfaces.api.http.error_mapping import raise_reset_password_error

router = APIRouter(responses=OPENAPI_ERROR_RESPONSES)


# -----------------------------------------------------------------------------
# Modelos HTTP (DTOs)
# -----------------------------------------------------------------------------


def _normalize_email(v: str) -> str:
    return v.strip().lower()


class LoginRequest(BaseModel):
    email: str = Field(..., min_length=3, max_length=320)
    password: str = Field(..., min_length=1, max_length=512)

    @field_validator("email")
    @classmethod
    def normalizar_email(cls, v: str) -> str:
        return _normalize_email(v)


class IdentityResponse(BaseModel):
    id: int
    email: str
    name: str = ""
    role: str
    verification_state: str
    active: bool


class LoginResponse(BaseModel):
    token: str
    token_type: str = "bearer"
    expires_in: int
    identity: IdentityResponse


class ForgotPasswordRequest(BaseModel):
    email: str = Field(..., min_length=3, max_length=320)

    @field_validator("email")
    @classmethod
    def normalizar_email(cls, v: str) -> str:
        return _normalize_email(v)


class ForgotPasswordResponse(BaseModel):
    message: str
    expires_in: int


class ResetPasswordRequest(BaseModel):
    email: str = Field(..., min_length=3, max_length=320)
    otp: str | None = Field(default=None, max_length=32)
    token: str | None = Field(default=None, max_length=256)
    new_password: str = Field(..., max_length=512)
    new_password_confirmation: str = Field(..., max_length=512)

    @field_validator("email")
    @classmethod
    def normalizar_email(cls, v: str) -> str:
        return _normalize_email(v)


class ResetPasswordWithTokenRequest(BaseModel):
    email: str = Field(..., min_length=3, max_length=320)
    new_password: str = Field(..., max_length=512)
    new_password_confirmation: str = Field(..., max_length=512)

    @field_validator("email")
    @classmethod
    def normalizar_email(cls, v: str) -> str:
        return _normalize_email(v)


class MessageResponse(BaseModel):
    message: str


# -----------------------------------------------------------------------------
# Helpers
# -----------------------------------------------------------------------------


def to_identity_response(user: User) -> IdentityResponse:
    return IdentityResponse(**user.to_identity().to_dict())


def _set_auth_cookie(response: Response, token: str, expires_in: int) -> None:
    settings = get_auth_settings()
    response.set_cookie(
        key=settings.jwt_cookie_name,
        value=token,
        httponly=True,
        secure=settings.jwt_cookie_secure,
        samesite="lax",
        max_age=expires_in,
        path="/",
    )


def _clear_auth_cookie(response: Response) -> None:
    settings = get_auth_settings()
    response.delete_cookie(
        key=settings.jwt_cookie_name,
        path="/",
        samesite="lax",
        secure=settings.jwt_cookie_secure,
    )


def _redeem(
    use_case: ResetPasswordUseCase, input_data: ResetPasswordInput
) -> MessageResponse:
    result = use_case.execute(input_data)
    if result.error is not None:
        raise_reset_password_error(result.error.code, result.error.message)
    return MessageResponse(message="Contraseña actualizada. Ya podés iniciar sesión.")


# -----------------------------------------------------------------------------
# Sesión
# -----------------------------------------------------------------------------


@router.post("/auth/login", response_model=LoginResponse, tags=["auth"])
def login(
    req: LoginRequest,
    response: Response,
    audit_repo: AuditEventRepository = Depends(get_audit_repository),
):
    """Inicia sesión y devuelve JWT (también como cookie httpOnly)."""
    try:
        user = authenticate_user(req.email, req.password)
    except InvalidCredentials:
        record_login_attempt("invalid_credentials")
        raise
    except AccountInactive:
        record_login_attempt("inactive")
        raise

    token, expires_in = create_access_token(user)
    _set_auth_cookie(response, token, expires_in)
    record_login_attempt("ok")

    emit_audit_event(
        audit_repo,
        action="auth.login",
        actor_id=user.id,
        target_type="user",
        target_id=user.id,
        metadata={"role": user.role.value},
    )
    return LoginResponse(
        token=token, expires_in=expires_in, identity=to_identity_response(user)
    )


@router.post("/auth/logout", tags=["auth"])
def logout(response: Response):
    """Cierra sesión. Idempotente: no requiere autenticación."""
    _clear_auth_cookie(response)
    return {"ok": True}


@router.get("/auth/me", response_model=IdentityResponse, tags=["auth"])
def me(user: User = Depends(require_user())):
    return to_identity_response(user)


# -----------------------------------------------------------------------------
# Recuperación de contraseña
# -----------------------------------------------------------------------------


@router.post(
    "/auth/forgot-password", response_model=ForgotPasswordResponse, tags=["auth"]
)
def forgot_password(
    req: ForgotPasswordRequest,
    use_case: RequestPasswordResetUseCase = Depends(
        get_request_password_reset_use_case
    ),
):
    """Siempre 200 con el mismo mensaje: no revela si el email existe."""
    result = use_case.execute(req.email)
    return ForgotPasswordResponse(message=result.message, expires_in=result.expires_in)


@router.post("/auth/reset-password", response_model=MessageResponse, tags=["auth"])
def reset_password(
    req: ResetPasswordRequest,
    use_case: ResetPasswordUseCase = Depends(get_reset_password_use_case),
):
    return _redeem(
        use_case,
        ResetPasswordInput(
            email=req.email,
            otp=req.otp,
            token=req.token,
            new_password=req.new_password,
            new_password_confirmation=req.new_password_confirmation,
        ),
    )


@router.post(
    "/auth/reset-password/{token}", response_model=MessageResponse, tags=["auth"]
)
def reset_password_with_link(
    token: str,
    req: ResetPasswordWithTokenRequest,
    use_case: ResetPasswordUseCase = Depends(get_reset_password_use_case),
):
    """Variante del link de email: el token viaja en el path."""
    return _redeem(
        use_case,
        ResetPasswordInput(
            email=req.email,
            token=token,
            new_password=req.new_password,
            new_password_confirmation=req.new_password_confirmation,
        ),
    )
