from typing import List, Optional
from uuid import UUID

from sqlalchemy import case, func, or_
from sqlalchemy.orm import Session

from app.core.cache import cache
from app.core.errors import ConflictError
from app.core.logger import get_logger
from app.models.course import Course, CourseLanguage
from app.models.enrollment import Enrollment
from app.models.enums import EnrollmentStatus, Language
from app.models.progress import Progress
from app.schemas.course import CourseCreate, CourseListData, CourseStatistics, CourseUpdate, CourseWithStats
from app.services.content_service import get_course
from app.services.tenancy import UserContext, apply_tenant_filter

logger = get_logger(__name__)


def _rate(part: float, whole: float) -> float:
    return round(part / whole * 100, 1) if whole else 0.0


def plants_cache_key(context: UserContext) -> str:
    if context.all_plants:
        return "*"
    return ",".join(sorted(str(plant_id) for plant_id in context.accessible_plants))


def _load_courses_with_stats(
    db: Session,
    context: UserContext,
    is_published: Optional[bool],
    search: Optional[str],
    version: Optional[str],
) -> CourseListData:
    query = db.query(Course)
    if is_published is not None:
        query = query.filter(Course.is_published.is_(is_published))
    if search:
        pattern = f"%{search}%"
        query = query.filter(or_(Course.title.ilike(pattern), Course.slug.ilike(pattern)))
    if version:
        query = query.filter(Course.version == version)
    courses = query.order_by(Course.title).all()

    enrollment_rows = apply_tenant_filter(
        db.query(
            Enrollment.course_id,
            func.count(Enrollment.id).label("total"),
            func.count(case((Enrollment.status == EnrollmentStatus.COMPLETED, 1))).label("completed"),
        ),
        Enrollment.plant_id,
        context,
    ).group_by(Enrollment.course_id).all()
    enrollment_stats = {row.course_id: row for row in enrollment_rows}

    progress_rows = apply_tenant_filter(
        db.query(Progress.course_id, func.avg(Progress.progress_percent).label("avg_progress")),
        Progress.plant_id,
        context,
    ).group_by(Progress.course_id).all()
    progress_stats = {row.course_id: float(row.avg_progress or 0) for row in progress_rows}

    items: List[CourseWithStats] = []
    for course in courses:
        stats = enrollment_stats.get(course.id)
        total = stats.total if stats else 0
        completed = stats.completed if stats else 0
        item = CourseWithStats.model_validate(course)
        item.total_enrollments = total
        item.completed_enrollments = completed
        item.avg_progress = round(progress_stats.get(course.id, 0.0), 1)
        item.completion_rate = _rate(completed, total)
        items.append(item)

    rated = [item.completion_rate for item in items if item.total_enrollments]
    statistics = CourseStatistics(
        total_courses=len(items),
        active_courses=sum(1 for item in items if item.is_published),
        total_enrollments=sum(item.total_enrollments for item in items),
        avg_completion_rate=round(sum(rated) / len(rated), 1) if rated else 0.0,
    )
    return CourseListData(courses=items, statistics=statistics)


def list_courses_with_stats(
    db: Session,
    context: UserContext,
    is_published: Optional[bool] = None,
    search: Optional[str] = None,
    version: Optional[str] = None,
) -> CourseListData:
    key = f"{plants_cache_key(context)}|{is_published}|{search}|{version}"
    return cache.get_or_set(
        "courses",
        key,
        lambda: _load_courses_with_stats(db, context, is_published, search, version),
    )


def _ensure_slug_available(db: Session, slug: str, exclude_id: Optional[UUID] = None) -> None:
    query = db.query(Course.id).filter(Course.slug == slug)
    if exclude_id:
        query = query.filter(Course.id != exclude_id)
    if query.first():
        raise ConflictError("A course with this slug already exists")


def _sync_languages(db: Session, course: Course, languages: List[Language]) -> None:
    """Make sure every available language has a course-language row."""
    existing = {row.language_code for row in course.languages}
    for language in languages:
        if language in existing:
            continue
        course.languages.append(CourseLanguage(
            language_code=language,
            is_primary=language == course.default_language,
            is_published=course.is_published,
        ))
    for row in course.languages:
        row.is_primary = row.language_code == course.default_language


def create_course(db: Session, data: CourseCreate) -> Course:
    _ensure_slug_available(db, data.slug)
    languages = list(dict.fromkeys([data.default_language, *data.available_languages]))
    course = Course(
        slug=data.slug,
        title=data.title,
        version=data.version,
        is_published=data.is_published,
        default_language=data.default_language,
        available_languages=[language.value for language in languages],
    )
    db.add(course)
    _sync_languages(db, course, languages)
    db.commit()
    db.refresh(course)
    cache.invalidate_for("course_update")
    logger.info(f"Course created: {course.slug} ({course.id})")
    return course


def update_course(db: Session, course_id: UUID, update: CourseUpdate) -> Course:
    course = get_course(db, course_id)
    changes = update.model_dump(exclude_unset=True)

    if changes.get("slug"):
        _ensure_slug_available(db, changes["slug"], exclude_id=course.id)
    for field_name in ("slug", "title", "version", "is_published", "default_language"):
        if changes.get(field_name) is not None:
            setattr(course, field_name, changes[field_name])

    languages = [Language(code) for code in course.available_languages or []]
    if changes.get("available_languages") is not None:
        languages = list(changes["available_languages"])
    if course.default_language not in languages:
        languages.insert(0, course.default_language)
    course.available_languages = [language.value for language in languages]
    _sync_languages(db, course, languages)

    db.commit()
    db.refresh(course)
    cache.invalidate_for("course_update")
    logger.info(f"Course updated: {course.slug} ({', '.join(changes) or 'no changes'})")
    return course


def delete_course(db: Session, course_id: UUID) -> None:
    course = get_course(db, course_id)
    db.delete(course)
    db.commit()
    cache.invalidate_for("course_update")
