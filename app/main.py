import logging

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.config import settings
from app.database import Base, engine
from app.models import contact_submission, lead_request, user_session, verification_code  # noqa: F401 (register tables)
from app.routers import auth, contact, dashboard, intake, uploads
from app.services.auth_middleware import SessionGateMiddleware
from app.services.cleanup_service import cleanup_scheduler
from app.utils.response import create_response, handle_exception

logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")

app = FastAPI(title=settings.PROJECT_NAME)

# Auto create tables
Base.metadata.create_all(bind=engine)

# CORS for the marketing site
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.add_middleware(SessionGateMiddleware)


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    detail = exc.detail if isinstance(exc.detail, str) else str(exc.detail)
    return create_response(detail, None, exc.status_code, status_text="error")


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    errors = exc.errors()
    message = "Invalid request"
    if errors:
        message = str(errors[0].get("msg", message)).removeprefix("Value error, ")
    return create_response(
        message,
        {"errors": [{"loc": list(error.get("loc", ())), "msg": error.get("msg")} for error in errors]},
        status.HTTP_400_BAD_REQUEST,
    )


@app.on_event("startup")
async def startup_event():
    await cleanup_scheduler.start()


@app.on_event("shutdown")
async def shutdown_event():
    await cleanup_scheduler.stop()

# Add routes
app.include_router(auth.router)
app.include_router(uploads.router)
app.include_router(contact.router)
app.include_router(intake.router)
app.include_router(dashboard.router)


@app.get("/")
def home():
    try:
        return create_response(
            message="Clay Roofing API running",
            data={"service": "clay-roofing-backend"},
            status_code=status.HTTP_200_OK
        )
    except Exception as exc:
        return handle_exception(exc)
