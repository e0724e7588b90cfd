"""
Configuration module for the tournament schedule bot

This module centralizes all configuration constants, environment variables,
and file paths used throughout the bot.
"""

import os
from dataclasses import dataclass
from typing import List
from dotenv import load_dotenv

# ============================================================================
# ENVIRONMENT SETUP
# ============================================================================

# Load environment variables from .env file (use absolute path for hosting)
SCRIPT_DIR = os.path.dirname(os.path.realpath(__file__))
_ENV_FILE = os.path.join(SCRIPT_DIR, '.env')

load_dotenv(_ENV_FILE)

# ============================================================================
# FILE PATHS
# ============================================================================

# Error logging
LOGS_DIR = os.getenv('LOGS_DIR', os.path.join(SCRIPT_DIR, "logs"))
os.makedirs(LOGS_DIR, exist_ok=True)

# Active tournament state
TOURNAMENTS_DIR = os.getenv('TOURNAMENTS_DIR', os.path.join(SCRIPT_DIR, "tournaments"))

# ============================================================================
# HELPER FUNCTIONS
# ============================================================================

def parse_int_list(env_var: str, default: list = None) -> list:
    """Parse comma-separated list of integers from environment variable"""
    value = os.getenv(env_var, "")
    if not value:
        return default or []
    try:
        return [int(x.strip()) for x in value.split(",") if x.strip()]
    except ValueError:
        return default or []


def parse_bool(env_var: str, default: bool = False) -> bool:
    """Parse a yes/no style flag from environment variable"""
    value = os.getenv(env_var, "")
    if not value:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


# ============================================================================
# BOT CONFIGURATION
# ============================================================================

@dataclass
class BotConfig:
    """Bot configuration constants"""
    ADMIN_ROLE_IDS: List[int] = None
    ADMIN_USER_IDS: List[int] = None

    def __post_init__(self):
        # Load from environment variables for security
        self.ADMIN_ROLE_IDS = parse_int_list('ADMIN_ROLE_IDS')
        self.ADMIN_USER_IDS = parse_int_list('ADMIN_USER_IDS')


config = BotConfig()

# ============================================================================
# CHANNEL IDs - loaded from environment variables
# ============================================================================

# Public channel where tournaments are announced and pinned
MAIN_CHANNEL_ID = int(os.getenv('MAIN_CHANNEL_ID', '0'))

# Admin channel that receives the weekly schedule preview
ADMIN_CHANNEL_ID = int(os.getenv('ADMIN_CHANNEL_ID', '0'))

# ============================================================================
# SCHEDULE SYSTEM
# ============================================================================

# All schedule times are wall-clock times in this zone
SCHEDULE_TIMEZONE = os.getenv('SCHEDULE_TIMEZONE', 'Europe/Moscow')

# Weekly preview: Sunday 15:00 (weekday numbering: Monday = 0)
SCHEDULE_PREVIEW_WEEKDAY = int(os.getenv('SCHEDULE_PREVIEW_WEEKDAY', '6'))
SCHEDULE_PREVIEW_HOUR = int(os.getenv('SCHEDULE_PREVIEW_HOUR', '15'))
SCHEDULE_PREVIEW_MINUTE = int(os.getenv('SCHEDULE_PREVIEW_MINUTE', '0'))

# Re-run the full next-occurrence computation on every re-arm (DST-safe)
SCHEDULE_RECOMPUTE_ON_REARM = parse_bool('SCHEDULE_RECOMPUTE_ON_REARM')

# Announcement preview length in the schedule message (characters)
SCHEDULE_INTRO_PREVIEW_LENGTH = 50

# Default weekly tournaments, re-instantiated every time the week is initialized
SCHEDULE_TEMPLATE = [
    {
        "id": "monday",
        "weekday": 0,
        "start_hour": 12,
        "end_hour": 21,
        "limit": 32,
        "lichess_limit": 0,
        "chesscom_limit": 0,
        "intro": "registration for the southern tournament is open! use /checkin to sign up",
    },
    {
        "id": "tuesday",
        "weekday": 1,
        "start_hour": 12,
        "end_hour": 21,
        "limit": 24,
        "lichess_limit": 1600,
        "chesscom_limit": 1201,
        "intro": "registration for the green tournament is open. use /checkin to sign up",
    },
    {
        "id": "wednesday",
        "weekday": 2,
        "start_hour": 12,
        "end_hour": 21,
        "limit": 24,
        "lichess_limit": 0,
        "chesscom_limit": 0,
        "intro": "we have opened registration for the rook tournament. use /checkin to sign up",
    },
]
