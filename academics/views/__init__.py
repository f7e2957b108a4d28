"""
Academics views package.

- attendance: the daily attendance register of a class
- timetable: today's lessons for the requesting user
"""
from .attendance import attendance_register
from .timetable import timetable_today

__all__ = [
    'attendance_register',
    'timetable_today',
]
