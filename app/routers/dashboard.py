from fastapi import APIRouter, Depends, status
from sqlalchemy import or_

from app.models.contact_submission import ContactSubmission
from app.schemas.contact import ContactSubmissionResponse
from app.services.auth_middleware import get_current_session
from app.utils.response import create_response, handle_exception

router = APIRouter(prefix="/dashboard", tags=["Dashboard"])


@router.get("")
def dashboard(auth_context=Depends(get_current_session)):
    try:
        session = auth_context["session"]
        db = auth_context["db"]

        matches = []
        if session.email:
            matches.append(ContactSubmission.email == session.email)
        if session.phone:
            matches.append(ContactSubmission.phone == session.phone)

        submissions = (
            db.query(ContactSubmission)
            .filter(or_(*matches))
            .order_by(ContactSubmission.submitted_at.desc(), ContactSubmission.id.desc())
            .all()
        )
        payload = [ContactSubmissionResponse.model_validate(item).model_dump() for item in submissions]
        return create_response(
            message="Dashboard fetched",
            data={"identifier": session.identifier, "count": len(payload), "submissions": payload},
            status_code=status.HTTP_200_OK,
        )
    except Exception as exc:
        return handle_exception(exc)
