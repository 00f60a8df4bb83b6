"""
SQLAlchemy models. Import here so Alembic and the SQL store can use them.
"""
from smansys.models.user import User
from smansys.models.student import Student

__all__ = ["User", "Student"]
