"""
JSON shapes for the records API.

Field names follow the client contract (camelCase ids such as `professorID`).
Password hashes never leave the server: `serialize_user` lists fields
explicitly instead of dumping the dataclass.
"""
from __future__ import annotations

from academics.models import Assignment, Course, Grade, User
from academics.services import CourseRoster, FacultyProfile, StudentProfile


def serialize_user(user: User) -> dict:
    return {"id": user.id, "name": user.name, "email": user.email, "role": user.role.value}


def serialize_course(course: Course) -> dict:
    return {"id": course.id, "name": course.name, "professorID": course.professor_id}


def serialize_roster(roster: CourseRoster) -> dict:
    body = serialize_course(roster.course)
    body["students"] = [serialize_user(s) for s in roster.students]
    return body


def serialize_assignment(assignment: Assignment) -> dict:
    return {"id": assignment.id, "name": assignment.name, "courseID": assignment.course_id}


def serialize_grade(grade: Grade) -> dict:
    return {
        "id": grade.id,
        "assignmentID": grade.assignment_id,
        "studentID": grade.student_id,
        "grade": grade.grade,
    }


def serialize_student(profile: StudentProfile) -> dict:
    body = serialize_user(profile.user)
    body["courses"] = [serialize_course(c) for c in profile.courses]
    body["assignments"] = [serialize_assignment(a) for a in profile.assignments]
    body["grades"] = [serialize_grade(g) for g in profile.grades]
    body["gpa"] = profile.gpa
    return body


def serialize_faculty(profile: FacultyProfile) -> dict:
    body = serialize_user(profile.user)
    body["teaching"] = [serialize_course(c) for c in profile.teaching]
    return body
