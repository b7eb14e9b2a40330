"""Translation of cron expressions into Celery beat schedules."""

from __future__ import annotations

from celery.schedules import ParseException, crontab

from ..exceptions import ConfigurationError


def build_crontab(expression: str) -> crontab:
    """
    Build a :class:`celery.schedules.crontab` from a cron expression.

    Accepts standard five-field cron (``minute hour day month weekday``) and
    six-field expressions with a leading seconds field, where ``?`` stands for
    "no specific value". The seconds field must be ``0``; beat does not
    schedule below minute resolution.

    Raises:
        ConfigurationError: If the expression has the wrong shape or values
    """
    fields = expression.split()
    if len(fields) == 6:
        seconds, fields = fields[0], fields[1:]
        if seconds not in {"0", "00"}:
            raise ConfigurationError(
                f"Cron expression '{expression}' uses seconds; only '0' is supported"
            )
    if len(fields) != 5:
        raise ConfigurationError(
            f"Cron expression '{expression}' must have 5 fields (or 6 with seconds)"
        )

    minute, hour, day_of_month, month_of_year, day_of_week = (
        "*" if field == "?" else field for field in fields
    )
    try:
        return crontab(
            minute=minute,
            hour=hour,
            day_of_month=day_of_month,
            month_of_year=month_of_year,
            day_of_week=day_of_week,
        )
    except (ParseException, ValueError) as exc:
        raise ConfigurationError(f"Invalid cron expression '{expression}': {exc}") from exc
