"""Attendance engine services."""
