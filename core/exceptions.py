#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Habit Streak Bot - Exceptions
Domain errors shared by the core, the stores and the services
"""


class HabitError(Exception):
    """Base class for habit tracking errors"""
    pass


class NotFoundError(HabitError):
    """Unknown user or habit id"""

    def __init__(self, message: str, user_id: int = None, habit_id: str = None):
        super().__init__(message)
        self.user_id = user_id
        self.habit_id = habit_id


class ValidationError(HabitError):
    """Malformed input rejected before any state change"""
    pass


class PersistenceError(HabitError):
    """The record store failed to read or write a user record"""

    def __init__(self, message: str, user_id: int = None):
        super().__init__(message)
        self.user_id = user_id


__all__ = ['HabitError', 'NotFoundError', 'ValidationError', 'PersistenceError']
