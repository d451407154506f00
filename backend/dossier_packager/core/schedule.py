"""
Cron expression handling for the periodic packaging trigger.

Accepts standard 5-field expressions (minute hour day month weekday) and
6-field expressions with a leading seconds field, whose seconds are dropped
since Celery Beat schedules at minute resolution.
"""

from __future__ import annotations

from celery.schedules import ParseException, crontab


class CronPatternError(ValueError):
    """The configured cron expression cannot be parsed."""


def parse_cron_pattern(pattern: str) -> crontab:
    """Convert a cron expression into a Celery ``crontab`` schedule."""
    fields = pattern.split()
    if len(fields) == 6:
        fields = fields[1:]
    if len(fields) != 5:
        raise CronPatternError(
            f"Expected 5 or 6 cron fields, got {len(pattern.split())}: '{pattern}'"
        )

    minute, hour, day_of_month, month_of_year, day_of_week = fields
    try:
        return crontab(
            minute=minute,
            hour=hour,
            day_of_month=day_of_month,
            month_of_year=month_of_year,
            day_of_week=day_of_week,
        )
    except (ParseException, ValueError) as exc:
        raise CronPatternError(f"Invalid cron pattern '{pattern}': {exc}") from exc


def build_beat_schedule(pattern: str, task_name: str) -> dict:
    """Build the Celery Beat schedule dict holding the packaging trigger."""
    return {
        "package-toezicht-dossiers": {
            "task": task_name,
            "schedule": parse_cron_pattern(pattern),
        },
    }
