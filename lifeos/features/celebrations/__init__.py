"""
Celebration feature module: one-shot notification when a task is completed
"""
from .service import TaskCelebration

__all__ = ["TaskCelebration"]
