from fastapi import APIRouter
from app.routes import (
    admin_analytics,
    admin_content,
    admin_courses,
    admin_enrollments,
    admin_plants,
    admin_users,
    auth,
    courses,
    health,
    profiles,
    progress,
)

api_router = APIRouter()

# Include all routers
api_router.include_router(health.router)
api_router.include_router(auth.router)
api_router.include_router(profiles.router)
api_router.include_router(progress.router)
api_router.include_router(courses.router)
api_router.include_router(admin_users.router)
api_router.include_router(admin_courses.router)
api_router.include_router(admin_enrollments.router)
api_router.include_router(admin_plants.router)
api_router.include_router(admin_analytics.router)
api_router.include_router(admin_content.router)
