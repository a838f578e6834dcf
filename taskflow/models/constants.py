"""Constants for taskflow.

This module centralizes magic numbers and default values used throughout the application.
"""

# Task defaults
DEFAULT_CATEGORY = "General"
UNTITLED_TASK_TITLE = "Untitled task"
AUTO_VALUE = "auto"

# Temporal resolution
DEFAULT_DUE_HOUR = 9
DEFAULT_DUE_MINUTE = 0

# Query engine
PRIORITY_RANK = {
    "high": 3,
    "medium": 2,
    "low": 1,
    "auto": 0,
}
WEEK_WINDOW_DAYS = 7

# Due-date bucket labels
BUCKET_NO_DATE = "No Date"
BUCKET_OVERDUE = "Overdue"
BUCKET_TODAY = "Today"
BUCKET_LATER = "Later"

# Dashboard
UPCOMING_SECTION_LIMIT = 5

# Daily summary
DAILY_SUMMARY_FALLBACK = "Great work today!"
DAILY_SUMMARY_EMPTY = "Keep pushing!"
