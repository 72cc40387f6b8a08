import logging

from fastapi import APIRouter, Depends, HTTPException, Response, status
from sqlalchemy.orm import Session

from app.config import settings
from app.database import get_db
from app.models.contact_submission import ContactSubmission
from app.schemas.contact import ContactSubmissionCreate
from app.services.email_services import (
    email_configured,
    send_submission_confirmation,
    send_team_notification,
)
from app.services.sms_service import send_sms
from app.utils.response import create_response, handle_exception

router = APIRouter(prefix="/api", tags=["Contact"])
logger = logging.getLogger(__name__)

VCARD = """BEGIN:VCARD
VERSION:3.0
N:Clay Roofing New York;;;
FN:Clay Roofing New York
ORG:Clay Roofing New York
TEL;TYPE=WORK:212-365-4386
EMAIL;TYPE=WORK:chris@clayroofingnewyork.com
URL:https://clayroofingnewyork.com
ADR;TYPE=WORK:;;33-15 127th Pl;Corona;NY;11368;USA
NOTE:Operating Hours: Mon-Fri 9:00 AM - 5:00 PM EDT
CATEGORIES:Roofing,Construction
END:VCARD"""


@router.post("/contact")
def submit_contact(body: ContactSubmissionCreate, db: Session = Depends(get_db)):
    try:
        field_errors = body.field_errors()
        if field_errors:
            return create_response(
                message="Please fix the errors below.",
                data={"field_errors": field_errors},
                status_code=status.HTTP_400_BAD_REQUEST,
            )

        if not email_configured() or not settings.CONTACT_TO:
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail="Email service not configured.",
            )

        submission = ContactSubmission(
            name=body.name,
            email=body.email,
            phone=body.phone,
            company=body.company,
            contact_type=body.contact_type,
            tile_family=body.tile_family,
            tile_color=body.tile_color,
            message=body.message,
            uploaded_files=body.uploaded_files,
            opt_in_sms=body.sms_opt_in,
        )
        db.add(submission)
        db.commit()
        db.refresh(submission)
        logger.info("Contact submission %s saved with %s attachment(s)", submission.id, len(body.uploaded_files))

        try:
            send_team_notification(submission)
        except Exception:
            logger.exception("Team notification for submission %s failed", submission.id)
            raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail="Failed to send email.")

        try:
            send_submission_confirmation(submission)
        except Exception:
            logger.warning("Confirmation email for submission %s failed", submission.id, exc_info=True)

        if submission.opt_in_sms and submission.phone:
            try:
                send_sms(
                    submission.phone,
                    f"Thank you, {submission.name}! We'll send updates to {submission.phone}. Reply STOP to unsubscribe.",
                )
            except Exception:
                logger.warning("Opt-in SMS for submission %s failed", submission.id, exc_info=True)

        return create_response(
            message="Thanks, your message was sent.",
            data={"id": submission.id},
            status_code=status.HTTP_201_CREATED,
        )
    except Exception as exc:
        return handle_exception(exc, fallback_message="Something went wrong. Please try again later.")


@router.get("/vcard")
def download_vcard():
    return Response(
        content=VCARD,
        media_type="text/vcard",
        headers={"Content-Disposition": 'attachment; filename="clay_roofing_new_york.vcf"'},
    )
