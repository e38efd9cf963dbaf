"""
EduGrade - answer grading and learning statistics for authored exercises
"""

__version__ = "0.1.0"
