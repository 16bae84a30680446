"""
Services module for Career Compass

Contains the application service:
- Career Service: assessments, roadmaps, step progress, goals and profile
"""

from .career_service import CareerService

__all__ = [
    'CareerService'
]
