"""Error Tracker application package."""
