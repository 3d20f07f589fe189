from fastapi import Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError
from sqlalchemy.exc import IntegrityError

from app.core.responses import ErrorResponse


class WorkoutTrackingError(Exception):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, detail: str, *, field: str | None = None):
        super().__init__(detail)
        self.detail = detail
        self.field = field


class NotFoundError(WorkoutTrackingError):
    status_code = status.HTTP_404_NOT_FOUND


class ValidationError(WorkoutTrackingError):
    status_code = status.HTTP_400_BAD_REQUEST


class NoScheduledSessionError(ValidationError):
    def __init__(self, day_of_week: str):
        super().__init__(f"No workout scheduled for {day_of_week}", field="date")
        self.day_of_week = day_of_week


class MissingReasonError(ValidationError):
    def __init__(self):
        super().__init__(
            "A non-completion reason is required when the workout was not completed",
            field="non_completion_reason",
        )


class MissingNotesError(ValidationError):
    def __init__(self):
        super().__init__(
            "Non-completion notes are required when the reason is 'other'",
            field="non_completion_notes",
        )


class ForbiddenError(WorkoutTrackingError):
    status_code = status.HTTP_403_FORBIDDEN


class DuplicateWriteError(WorkoutTrackingError):
    status_code = status.HTTP_409_CONFLICT


async def validation_exception_handler(request: Request, exc: RequestValidationError):
    request_id = getattr(request.state, "request_id", None)
    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content={"detail": jsonable_encoder(exc.errors()), "message": "Validation Error", "request_id": request_id},
    )

async def integrity_exception_handler(request: Request, exc: IntegrityError):
    request_id = getattr(request.state, "request_id", None)
    return JSONResponse(
        status_code=status.HTTP_409_CONFLICT,
        content={"detail": "Database conflict. A record with this identifier likely already exists.", "request_id": request_id},
    )

async def tracking_exception_handler(request: Request, exc: WorkoutTrackingError):
    request_id = getattr(request.state, "request_id", None)
    body = ErrorResponse(detail=exc.detail, field=exc.field, request_id=request_id)
    return JSONResponse(status_code=exc.status_code, content=body.model_dump())
