# handlers/router.py

from telegram.ext import Application

from handlers.commands.habits import register_habit_handlers
from handlers.callbacks.habits import register_habits_callbacks

def register_handlers(application: Application):
    """Attach every command and callback handler to the application"""
    register_habit_handlers(application)
    register_habits_callbacks(application)
