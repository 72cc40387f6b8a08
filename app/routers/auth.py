from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from app.config import settings
from app.database import get_db
from app.schemas.auth import RequestCode, SessionResponse, VerifyCode
from app.services.auth_middleware import get_current_session
from app.services.otp_service import (
    CodeDeliveryError,
    InvalidCodeError,
    request_code,
    revoke_session,
    verify_code,
)
from app.utils.response import create_response, handle_exception

router = APIRouter(prefix="/api/auth", tags=["Auth"])


@router.post("")
def send_code(body: RequestCode, db: Session = Depends(get_db)):
    try:
        request_code(db, body.email, body.phone, body.type)
        return create_response(message="Code sent!", status_code=status.HTTP_200_OK)
    except CodeDeliveryError as exc:
        return handle_exception(
            HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(exc))
        )
    except Exception as exc:
        return handle_exception(exc, fallback_message="Failed to send code")


@router.post("/verify")
def verify(body: VerifyCode, db: Session = Depends(get_db)):
    try:
        try:
            session = verify_code(db, body.code, body.email, body.phone)
        except InvalidCodeError as exc:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))

        response = create_response(message="Login successful", status_code=status.HTTP_200_OK)
        response.set_cookie(
            key=settings.AUTH_COOKIE_NAME,
            value=session.token,
            max_age=settings.SESSION_EXPIRE_DAYS * 24 * 60 * 60,
            httponly=True,
            secure=settings.is_production,
            samesite="lax",
        )
        return response
    except Exception as exc:
        return handle_exception(exc, fallback_message="Verification failed")


@router.get("/session")
def current_session(auth_context=Depends(get_current_session)):
    try:
        session = auth_context["session"]
        return create_response(
            message="Session active",
            data=SessionResponse.model_validate(session).model_dump(),
            status_code=status.HTTP_200_OK,
        )
    except Exception as exc:
        return handle_exception(exc)


@router.post("/logout")
def logout(auth_context=Depends(get_current_session)):
    try:
        revoke_session(auth_context["db"], auth_context["session"])
        response = create_response(message="Logout successful", status_code=status.HTTP_200_OK)
        response.delete_cookie(settings.AUTH_COOKIE_NAME)
        return response
    except Exception as exc:
        return handle_exception(exc)
