#!/usr/bin/env python3

import sys
import os
sys.path.append(os.path.dirname(os.path.abspath(__file__)))

from sqlalchemy import func
from app.db.session import SessionLocal, system_context
from app.models.course import Course
from app.models.enrollment import Enrollment
from app.models.plant import Plant
from app.models.profile import Profile
from app.models.progress import Progress

def debug_database():
    db = SessionLocal()
    try:
        system_context(db)
        print("=== DATABASE DEBUG ===")

        # Plants with their head counts
        plants = db.query(Plant).order_by(Plant.name).all()
        print(f"Plants ({len(plants)}):")
        for plant in plants:
            users = db.query(func.count(Profile.id)).filter(Profile.plant_id == plant.id).scalar()
            status = "active" if plant.is_active else "inactive"
            print(f"  - {plant.name} (ID: {plant.id}, {status}, {users} users)")

        # Courses with enrollment counts
        courses = db.query(Course).order_by(Course.title).all()
        print(f"Courses ({len(courses)}):")
        for course in courses:
            enrolled = db.query(func.count(Enrollment.id)).filter(Enrollment.course_id == course.id).scalar()
            print(f"  - {course.title} [{course.slug}] published={course.is_published} enrollments={enrolled}")

        # Enrollments whose progress row is missing
        orphans = (
            db.query(Enrollment)
            .outerjoin(
                Progress,
                (Progress.user_id == Enrollment.user_id) & (Progress.course_id == Enrollment.course_id),
            )
            .filter(Progress.id.is_(None))
            .all()
        )
        if orphans:
            print(f"WARNING: {len(orphans)} enrollments have no progress row:")
            for enrollment in orphans:
                print(f"  - enrollment {enrollment.id} (user {enrollment.user_id}, course {enrollment.course_id})")

        # Progress rows filed under a different plant than their enrollment
        mismatched = (
            db.query(Progress, Enrollment)
            .join(
                Enrollment,
                (Progress.user_id == Enrollment.user_id) & (Progress.course_id == Enrollment.course_id),
            )
            .filter(Progress.plant_id != Enrollment.plant_id)
            .all()
        )
        if mismatched:
            print(f"WARNING: {len(mismatched)} progress rows disagree with their enrollment's plant")

    finally:
        db.close()

if __name__ == "__main__":
    debug_database()
