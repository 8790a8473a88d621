"""
HTTP API for the interviewer.
"""

from resume_interviewer.api.app import create_app

__all__ = ["create_app"]
