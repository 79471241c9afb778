"""
Students engine - tenant-scoped student records and driving-time accounting.
"""

from src.engines.students.student_service import StudentService

__all__ = [
    "StudentService",
]
