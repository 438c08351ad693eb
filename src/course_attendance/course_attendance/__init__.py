"""Course Attendance package.

This package is organized by feature modules (attendance, courses, students,
settings) with a thin Flask controller layer and service/repository layers.
"""
