"""Class Attendance package.

This package is organized by feature modules (schedules, assignments,
attendance, ...) with a thin Flask controller layer and service/repository
layers underneath.
"""
