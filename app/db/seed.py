"""
Idempotent seed data: plants, the two HazMat e-book courses and a starter
section for each course.

    python -m app.db.seed
    python -m app.db.seed --admin-id <auth user id> --admin-email hr@specchem.com
"""
import argparse
from typing import Optional
from uuid import UUID

from sqlalchemy.orm import Session

from app.core.logger import get_logger
from app.db.session import SessionLocal, system_context
from app.models.admin_role import AdminRole
from app.models.content import CourseSection, QuizQuestion, ContentBlock
from app.models.course import Course, CourseLanguage
from app.models.enums import AdminRoleType, BlockType, EnrollmentStatus, Language, QuestionType
from app.models.enrollment import Enrollment
from app.models.plant import Plant
from app.models.profile import Profile
from app.services.course_catalog import get_all_courses
from app.services.progress_service import initialize_user_progress

logger = get_logger(__name__)

DEFAULT_PLANTS = [
    ("550e8400-e29b-41d4-a716-446655440001", "Columbus, OH - Corporate"),
    ("550e8400-e29b-41d4-a716-446655440002", "Atlanta, GA"),
    ("550e8400-e29b-41d4-a716-446655440003", "Denver, CO"),
    ("550e8400-e29b-41d4-a716-446655440004", "Seattle, WA"),
    ("550e8400-e29b-41d4-a716-446655440005", "Phoenix, AZ"),
    ("550e8400-e29b-41d4-a716-446655440006", "Dallas, TX"),
    ("550e8400-e29b-41d4-a716-446655440007", "Chicago, IL"),
    ("550e8400-e29b-41d4-a716-446655440008", "Miami, FL"),
]
CORPORATE_PLANT_ID = UUID(DEFAULT_PLANTS[0][0])

STARTER_SECTION = {
    Language.EN: {
        "title": "Introduction",
        "heading": "Function-Specific HazMat Training",
        "body": "This course covers the hazardous materials duties of your role.",
        "question": "Hazardous materials training must be refreshed at least every three years.",
        "options": ["True", "False"],
        "answer": "True",
        "explanation": "Recurrent training is required at least once every three years.",
    },
    Language.ES: {
        "title": "Introducción",
        "heading": "Capacitación Específica de HazMat por Función",
        "body": "Este curso cubre las responsabilidades sobre materiales peligrosos de su puesto.",
        "question": "La capacitación sobre materiales peligrosos debe renovarse al menos cada tres años.",
        "options": ["Verdadero", "Falso"],
        "answer": "Verdadero",
        "explanation": "La capacitación recurrente se requiere al menos una vez cada tres años.",
    },
}


def seed_plants(db: Session) -> int:
    created = 0
    for plant_id, name in DEFAULT_PLANTS:
        if db.query(Plant.id).filter(Plant.name == name).first():
            logger.info(f"Plant already exists: {name}")
            continue
        db.add(Plant(id=UUID(plant_id), name=name, is_active=True))
        created += 1
        logger.info(f"Created plant: {name}")
    db.commit()
    return created


def seed_courses(db: Session) -> int:
    created = 0
    for route in get_all_courses():
        language = Language(route.language)
        course = db.query(Course).filter(Course.slug == route.slug).first()
        if course is None:
            course = Course(
                id=route.id,
                slug=route.slug,
                title=route.title,
                version="1.0",
                is_published=True,
                default_language=language,
                available_languages=[language.value],
            )
            db.add(course)
            created += 1
            logger.info(f"Created course: {route.title}")
        else:
            course.title = route.title
            course.is_published = True
            logger.info(f"Updated course: {route.title}")

        if not any(row.language_code == language for row in course.languages):
            course.languages.append(
                CourseLanguage(language_code=language, is_primary=True, is_published=True)
            )
    db.commit()
    return created


def seed_starter_content(db: Session) -> int:
    created = 0
    for route in get_all_courses():
        language = Language(route.language)
        text = STARTER_SECTION[language]
        exists = db.query(CourseSection.id).filter(
            CourseSection.course_id == route.id,
            CourseSection.section_key == "introduction",
        ).first()
        if exists:
            continue
        section = CourseSection(
            course_id=route.id,
            section_key="introduction",
            title=text["title"],
            order_index=0,
            icon_name="BookOpen",
            is_published=True,
        )
        section.content_blocks.append(ContentBlock(
            block_type=BlockType.HERO,
            order_index=0,
            content={"title": text["heading"], "subtitle": text["body"]},
        ))
        section.quiz_questions.append(QuizQuestion(
            question_key="intro-refresher",
            question_type=QuestionType.TRUE_FALSE,
            question_text=text["question"],
            options=text["options"],
            correct_answer=text["answer"],
            explanation=text["explanation"],
            order_index=0,
        ))
        db.add(section)
        created += 1
        logger.info(f"Created starter section for {route.slug}")
    db.commit()
    return created


def auto_enroll_user(db: Session, user_id: UUID, plant_id: UUID) -> int:
    """Enroll a user in every e-book course they are not enrolled in yet."""
    enrolled = 0
    for route in get_all_courses():
        if db.query(Enrollment.id).filter(
            Enrollment.user_id == user_id,
            Enrollment.course_id == route.id,
        ).first():
            continue
        db.add(Enrollment(
            user_id=user_id,
            course_id=route.id,
            plant_id=plant_id,
            status=EnrollmentStatus.ENROLLED,
        ))
        db.flush()
        initialize_user_progress(db, user_id, plant_id, route.id)
        enrolled += 1
    db.commit()
    return enrolled


def create_sample_admin(
    db: Session,
    user_id: UUID,
    email: str,
    first_name: str = "Sample",
    last_name: str = "Admin",
    plant_id: Optional[UUID] = None,
) -> Profile:
    """Organisation-wide HR admin enrolled in both courses."""
    plant_id = plant_id or CORPORATE_PLANT_ID
    profile = db.query(Profile).filter(Profile.id == user_id).first()
    if profile is None:
        profile = Profile(
            id=user_id,
            plant_id=plant_id,
            first_name=first_name,
            last_name=last_name,
            email=email,
        )
        db.add(profile)
        db.flush()
        logger.info(f"Created profile: {first_name} {last_name}")

    has_role = db.query(AdminRole.id).filter(
        AdminRole.user_id == user_id,
        AdminRole.role == AdminRoleType.HR_ADMIN,
        AdminRole.plant_id.is_(None),
    ).first()
    if not has_role:
        db.add(AdminRole(user_id=user_id, role=AdminRoleType.HR_ADMIN, plant_id=None))
        logger.info("Assigned HR admin role")
    db.commit()

    auto_enroll_user(db, user_id, profile.plant_id)
    return profile


def seed_database(db: Session) -> None:
    system_context(db)
    plants = seed_plants(db)
    courses = seed_courses(db)
    sections = seed_starter_content(db)
    logger.info(f"Seeding completed: {plants} plants, {courses} courses, {sections} sections created")


def main() -> None:
    parser = argparse.ArgumentParser(description="Seed the training database")
    parser.add_argument("--admin-id", type=UUID, help="auth provider user id for a sample HR admin")
    parser.add_argument("--admin-email", help="email for the sample HR admin")
    args = parser.parse_args()

    db = SessionLocal()
    try:
        seed_database(db)
        if args.admin_id and args.admin_email:
            create_sample_admin(db, args.admin_id, args.admin_email)
    finally:
        db.close()


if __name__ == "__main__":
    main()
