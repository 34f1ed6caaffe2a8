"""
Course content delivery, translation overlay and content import/export.

Translations live in ``content_translations`` keyed by content type and id.
They are applied only when the requested language differs from the
course's default language, and are exposed under keys of the form
``"{content_type}_{content_id}"``.
"""
from typing import Any, Dict, List, Optional, Tuple
from uuid import UUID

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, selectinload

from app.core.cache import cache
from app.core.errors import NotFoundError, ValidationError
from app.core.logger import get_logger
from app.db.base_class import utcnow
from app.models.content import ContentBlock, ContentTranslation, CourseSection, QuizQuestion
from app.models.course import Course, CourseLanguage
from app.models.enums import ContentType, Language
from app.schemas.content import (
    ContentBlockOut,
    ContentExportOut,
    ContentImportRequest,
    CourseContentCourse,
    CourseContentOut,
    ExportSection,
    ImportResultOut,
    ImportSection,
    QuizQuestionOut,
    SectionContentOut,
)

logger = get_logger(__name__)

Translations = Dict[str, Dict[str, Any]]


def parse_language(value: Optional[str]) -> Language:
    try:
        return Language(value or Language.EN.value)
    except ValueError:
        raise ValidationError("Invalid language code", field="lang")


def translation_key(content_type: ContentType, content_id: UUID) -> str:
    return f"{content_type.value}_{content_id}"


def get_course(db: Session, course_id: UUID) -> Course:
    course = db.query(Course).filter(Course.id == course_id).first()
    if not course:
        raise NotFoundError("Course not found")
    return course


def get_course_for_language(db: Session, course_id: UUID, language: Language) -> Course:
    course = (
        db.query(Course)
        .join(CourseLanguage, CourseLanguage.course_id == Course.id)
        .filter(
            Course.id == course_id,
            CourseLanguage.language_code == language,
            CourseLanguage.is_published.is_(True),
        )
        .first()
    )
    if not course:
        raise NotFoundError("Course not found or not available in requested language")
    return course


def _sections_query(db: Session, course_id: UUID, published_only: bool = True):
    query = (
        db.query(CourseSection)
        .options(
            selectinload(CourseSection.content_blocks),
            selectinload(CourseSection.quiz_questions),
        )
        .filter(CourseSection.course_id == course_id)
    )
    if published_only:
        query = query.filter(CourseSection.is_published.is_(True))
    return query.order_by(CourseSection.order_index)


def get_published_section(db: Session, course_id: UUID, section_key: str) -> CourseSection:
    section = _sections_query(db, course_id).filter(CourseSection.section_key == section_key).first()
    if not section:
        raise NotFoundError("Section not found")
    return section


def load_translations(db: Session, course: Course, language: Language, sections: List[CourseSection]) -> Translations:
    """Translations for every section, block and question of ``sections``."""
    if language == course.default_language or not sections:
        return {}

    content_ids: List[UUID] = []
    for section in sections:
        content_ids.append(section.id)
        content_ids.extend(block.id for block in section.content_blocks)
        content_ids.extend(question.id for question in section.quiz_questions)

    rows = db.query(ContentTranslation).filter(
        ContentTranslation.language_code == language,
        ContentTranslation.content_id.in_(content_ids),
    ).all()
    return {
        translation_key(row.content_type, row.content_id): row.translated_content
        for row in rows
    }


def _block_out(block: ContentBlock, translations: Translations) -> ContentBlockOut:
    translated = translations.get(translation_key(ContentType.CONTENT_BLOCK, block.id))
    return ContentBlockOut(
        id=block.id,
        block_type=block.block_type,
        order_index=block.order_index,
        content=translated or block.content,
        metadata=block.block_metadata,
    )


def _question_out(question: QuizQuestion, translations: Translations) -> QuizQuestionOut:
    translated = translations.get(translation_key(ContentType.QUIZ_QUESTION, question.id)) or {}
    return QuizQuestionOut(
        id=question.id,
        question_key=question.question_key,
        question_type=question.question_type,
        question_text=translated.get("questionText") or question.question_text,
        options=translated.get("options") or question.options,
        explanation=translated.get("explanation") or question.explanation,
        order_index=question.order_index,
    )


def _section_out(section: CourseSection, translations: Translations) -> SectionContentOut:
    translated = translations.get(translation_key(ContentType.SECTION, section.id)) or {}
    return SectionContentOut(
        id=section.id,
        section_key=section.section_key,
        title=translated.get("title") or section.title,
        order_index=section.order_index,
        icon_name=section.icon_name,
        content_blocks=[_block_out(block, translations) for block in section.content_blocks],
        quiz_questions=[_question_out(question, translations) for question in section.quiz_questions],
    )


def _course_header(course: Course) -> CourseContentCourse:
    return CourseContentCourse(
        id=course.id,
        slug=course.slug,
        title=course.title,
        version=course.version,
        default_language=course.default_language,
        content_version=course.content_version,
    )


def get_course_content(db: Session, course_id: UUID, language: Language) -> CourseContentOut:
    course = get_course_for_language(db, course_id, language)
    sections = _sections_query(db, course.id).all()
    translations = load_translations(db, course, language, sections)
    return CourseContentOut(
        course=_course_header(course),
        language=language,
        sections=[_section_out(section, translations) for section in sections],
        translations=translations,
    )


def get_section_content(db: Session, course_id: UUID, section_key: str, language: Language) -> SectionContentOut:
    course = get_course(db, course_id)
    section = get_published_section(db, course.id, section_key)
    translations = load_translations(db, course, language, [section])
    return _section_out(section, translations)


def get_section_quiz(db: Session, course_id: UUID, section_key: str, language: Language) -> List[QuizQuestionOut]:
    course = get_course(db, course_id)
    section = get_published_section(db, course.id, section_key)
    if not section.quiz_questions:
        return []
    translations = load_translations(db, course, language, [section])
    return [_question_out(question, translations) for question in section.quiz_questions]


def export_course_content(db: Session, course_id: UUID, language: Language) -> Tuple[ContentExportOut, str]:
    """Whole course, published or not, in re-importable form plus a download filename."""
    course = get_course(db, course_id)
    sections = _sections_query(db, course.id, published_only=False).all()
    translations = load_translations(db, course, language, sections)

    content = []
    for section in sections:
        section_out = _section_out(section, translations)
        content.append(ExportSection(
            section_key=section.section_key,
            title=section_out.title,
            order_index=section.order_index,
            icon_name=section.icon_name,
            is_published=section.is_published,
            content_blocks=[
                {
                    "block_type": block.block_type,
                    "order_index": block.order_index,
                    "content": block.content,
                    "metadata": block.metadata,
                }
                for block in section_out.content_blocks
            ],
            quiz_questions=[
                {
                    "question_key": question.question_key,
                    "question_type": question.question_type,
                    "question_text": translated.question_text,
                    "options": translated.options,
                    "correct_answer": question.correct_answer,
                    "explanation": translated.explanation,
                    "order_index": question.order_index,
                }
                for question, translated in zip(section.quiz_questions, section_out.quiz_questions)
            ],
        ))

    exported_at = utcnow()
    export = ContentExportOut(
        course=_course_header(course),
        language=language,
        available_languages=list(course.available_languages or []),
        content=content,
        translations=translations,
        exported_at=exported_at,
        version=course.content_version or "1.0",
    )
    filename = f"course-{course.slug}-{language.value}-{exported_at.date().isoformat()}.json"
    return export, filename


def _import_base_section(db: Session, course: Course, data: ImportSection, result: ImportResultOut) -> None:
    section = db.query(CourseSection).filter(
        CourseSection.course_id == course.id,
        CourseSection.section_key == data.section_key,
    ).first()
    if section:
        section.title = data.title
        section.order_index = data.order_index
        section.icon_name = data.icon_name
        section.is_published = data.is_published
        # blocks and questions are replaced wholesale
        section.content_blocks.clear()
        section.quiz_questions.clear()
        db.flush()
        result.sections_updated += 1
    else:
        section = CourseSection(
            course_id=course.id,
            section_key=data.section_key,
            title=data.title,
            order_index=data.order_index,
            icon_name=data.icon_name,
            is_published=data.is_published,
        )
        db.add(section)
        db.flush()
        result.sections_created += 1

    for block in data.content_blocks:
        section.content_blocks.append(ContentBlock(
            block_type=block.block_type,
            order_index=block.order_index,
            content=block.content,
            block_metadata=block.metadata,
        ))
        result.content_blocks_created += 1

    for question in data.quiz_questions:
        section.quiz_questions.append(QuizQuestion(
            question_key=question.question_key,
            question_type=question.question_type,
            question_text=question.question_text,
            options=question.options,
            correct_answer=question.correct_answer,
            explanation=question.explanation,
            order_index=question.order_index,
        ))
        result.quiz_questions_created += 1
    db.flush()


def _save_translation(db: Session, content_type: ContentType, content_id: UUID, language: Language, content: dict) -> None:
    row = db.query(ContentTranslation).filter(
        ContentTranslation.content_type == content_type,
        ContentTranslation.content_id == content_id,
        ContentTranslation.language_code == language,
    ).first()
    if row:
        row.translated_content = content
    else:
        db.add(ContentTranslation(
            content_type=content_type,
            content_id=content_id,
            language_code=language,
            translated_content=content,
        ))


def _import_translated_section(
    db: Session,
    course: Course,
    language: Language,
    data: ImportSection,
    result: ImportResultOut,
) -> None:
    section = db.query(CourseSection).filter(
        CourseSection.course_id == course.id,
        CourseSection.section_key == data.section_key,
    ).first()
    if not section:
        result.errors.append(
            f"Section {data.section_key}: translations need the {course.default_language.value} section to exist"
        )
        return

    _save_translation(db, ContentType.SECTION, section.id, language, {"title": data.title})
    result.translations_saved += 1

    blocks_by_order = {block.order_index: block for block in section.content_blocks}
    for block in data.content_blocks:
        target = blocks_by_order.get(block.order_index)
        if target is None:
            result.errors.append(f"Section {data.section_key}: no content block at position {block.order_index}")
            continue
        _save_translation(db, ContentType.CONTENT_BLOCK, target.id, language, block.content)
        result.translations_saved += 1

    questions_by_key = {question.question_key: question for question in section.quiz_questions}
    for question in data.quiz_questions:
        target = questions_by_key.get(question.question_key)
        if target is None:
            result.errors.append(f"Section {data.section_key}: unknown question {question.question_key}")
            continue
        _save_translation(db, ContentType.QUIZ_QUESTION, target.id, language, {
            "questionText": question.question_text,
            "options": question.options,
            "explanation": question.explanation,
        })
        result.translations_saved += 1
    db.flush()


def _merge_counts(result: ImportResultOut, section_result: ImportResultOut) -> None:
    result.sections_created += section_result.sections_created
    result.sections_updated += section_result.sections_updated
    result.content_blocks_created += section_result.content_blocks_created
    result.quiz_questions_created += section_result.quiz_questions_created
    result.translations_saved += section_result.translations_saved
    result.errors.extend(section_result.errors)


def import_course_content(db: Session, payload: ContentImportRequest) -> ImportResultOut:
    """
    Import sections into a course.

    In the course's default language sections are upserted by section key and
    their blocks and questions replaced. In any other language the payload is
    stored as translations of the existing sections. Each section is applied in
    its own savepoint; a failing section is reported in ``errors`` and the rest
    of the import continues.
    """
    course = get_course(db, payload.course_id)
    result = ImportResultOut()

    for section_data in payload.sections:
        # counted separately so a rolled-back section adds nothing
        section_result = ImportResultOut()
        try:
            with db.begin_nested():
                if payload.language == course.default_language:
                    _import_base_section(db, course, section_data, section_result)
                else:
                    _import_translated_section(db, course, payload.language, section_data, section_result)
        except SQLAlchemyError as e:
            logger.error(f"Error importing section {section_data.section_key}: {str(e)}")
            result.errors.append(f"Section {section_data.section_key}: {str(e)}")
            continue
        _merge_counts(result, section_result)

    if payload.language.value not in (course.available_languages or []):
        course.available_languages = list(course.available_languages or []) + [payload.language.value]

    db.commit()
    cache.invalidate_for("course_update")
    logger.info(
        f"Imported content into {course.slug}: {result.sections_created} sections created, "
        f"{result.sections_updated} updated, {len(result.errors)} errors"
    )
    return result
