import logging

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from app.database import get_db
from app.models.lead_request import LeadRequest
from app.schemas.intake import CallbackRequest, LeadRequestResponse, ProjectDetails
from app.utils.response import create_response, handle_exception

router = APIRouter(prefix="/api/intake", tags=["Intake"])
logger = logging.getLogger(__name__)

FIELD_ERRORS_MESSAGE = "Please fix the errors below."
FALLBACK_MESSAGE = "An unexpected error occurred. Please try again."


def _invalid(field_errors: dict[str, list[str]]):
    return create_response(
        message=FIELD_ERRORS_MESSAGE,
        data={"field_errors": field_errors},
        status_code=status.HTTP_400_BAD_REQUEST,
    )


@router.post("/step1")
def request_callback(body: CallbackRequest, db: Session = Depends(get_db)):
    try:
        field_errors = body.field_errors()
        if field_errors:
            return _invalid(field_errors)

        lead = LeadRequest(
            name=body.name,
            phone=body.phone_digits,
            email=body.email,
            project_type=body.project_type,
        )
        db.add(lead)
        db.commit()
        db.refresh(lead)
        logger.info("Lead %s created (%s)", lead.id, lead.project_type)

        return create_response(
            message="Callback requested successfully.",
            data={"record_id": lead.id},
            status_code=status.HTTP_201_CREATED,
        )
    except Exception as exc:
        return handle_exception(exc, fallback_message=FALLBACK_MESSAGE)


@router.post("/step2")
def submit_project_details(body: ProjectDetails, db: Session = Depends(get_db)):
    try:
        field_errors = body.field_errors()
        if field_errors:
            return _invalid(field_errors)

        lead = db.query(LeadRequest).filter(LeadRequest.id == body.record_id).first()
        if not lead:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Request not found")

        lead.project_address = body.project_address
        lead.roof_size = None if body.is_roof_size_unsure else body.roof_size
        lead.is_roof_size_unsure = body.is_roof_size_unsure
        lead.plan_urls = body.plans
        lead.photo_urls = body.photos
        lead.tile_type = body.tile_type
        lead.timeframe = body.timeframe
        lead.referral = body.referral
        lead.message = body.message
        lead.status = "details_received"
        db.commit()
        db.refresh(lead)
        logger.info(
            "Lead %s updated with %s plan(s) and %s photo(s)", lead.id, len(lead.plan_urls), len(lead.photo_urls)
        )

        return create_response(
            message="Details submitted successfully.",
            data=LeadRequestResponse.model_validate(lead).model_dump(),
            status_code=status.HTTP_200_OK,
        )
    except Exception as exc:
        return handle_exception(exc, fallback_message=FALLBACK_MESSAGE)
