"""
HTTP API for EduGrade
"""
