from typing import Any, Optional
from uuid import UUID
from fastapi import APIRouter, Depends, Query
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session
from app.api.deps import get_db, require_admin
from app.core.errors import AppError, DatabaseError
from app.core.logger import get_logger
from app.models.enums import AdminRoleType
from app.schemas.common import ApiResponse
from app.schemas.content import ContentImportRequest, ImportResultOut
from app.services import content_service
from app.services.tenancy import UserContext

# Initialize logger
logger = get_logger(__name__)

router = APIRouter(prefix="/admin/content", tags=["admin-content"])

require_dev_admin = require_admin(AdminRoleType.DEV_ADMIN)


@router.get("/export")
def export_content(
    course_id: UUID = Query(..., alias="courseId"),
    language: Optional[str] = Query(None),
    db: Session = Depends(get_db),
    current_user: UserContext = Depends(require_dev_admin),
) -> Any:
    """
    Download a course's content in one language as a JSON attachment.
    """
    lang = content_service.parse_language(language)
    logger.info(f"Content export of course {course_id} ({lang.value}) by {current_user.email}")
    export, filename = content_service.export_course_content(db, course_id, lang)
    return JSONResponse(
        content=export.model_dump(mode="json", by_alias=True),
        headers={
            "Content-Disposition": f'attachment; filename="{filename}"',
            "Cache-Control": "no-cache",
        },
    )


@router.post("/import", response_model=ApiResponse[ImportResultOut])
def import_content(
    *,
    db: Session = Depends(get_db),
    payload: ContentImportRequest,
    current_user: UserContext = Depends(require_dev_admin),
) -> Any:
    """
    Upsert sections by key, replacing their blocks and questions. Sections
    that fail are reported in ``errors`` without stopping the import.
    """
    logger.info(
        f"Content import for course {payload.course_id} ({payload.language.value}, "
        f"{len(payload.sections)} sections) by {current_user.email}"
    )
    try:
        result = content_service.import_course_content(db, payload)
        message = "Import completed" if not result.errors else f"Import completed with {len(result.errors)} errors"
        return {"data": result, "message": message}
    except AppError:
        raise
    except Exception as e:
        logger.error(f"Error importing content: {str(e)}")
        db.rollback()
        raise DatabaseError("An error occurred while importing content")
