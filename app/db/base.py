# Import the Base class
from app.db.base_class import Base

# Import all models to ensure they are registered with SQLAlchemy
from app.models.plant import Plant
from app.models.course import Course, CourseLanguage
from app.models.profile import Profile
from app.models.admin_role import AdminRole
from app.models.enrollment import Enrollment
from app.models.progress import Progress
from app.models.events import ActivityEvent, QuestionEvent
from app.models.content import CourseSection, ContentBlock, QuizQuestion, ContentTranslation
from app.models.section_progress import SectionProgress
