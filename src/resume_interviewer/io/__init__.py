"""
IO module for interview interfaces.

Provides the terminal interface for practicing an interview.
"""

from resume_interviewer.io.text_interface import TextInterface

__all__ = ["TextInterface"]
