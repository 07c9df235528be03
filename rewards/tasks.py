import logging
from functools import wraps

from celery import shared_task
from django.conf import settings
from django.db import connection

from .entities import RewardsQueryOpts
from .exceptions import PayoutError
from .services.manager import RewardsManager
from .windows import normalize_date_ts, window_label, yesterday_ts

logger = logging.getLogger(__name__)


def ensure_db_connection_closed(func):
    """Decorator to ensure database connections are properly closed after task execution"""
    @wraps(func)
    def wrapper(*args, **kwargs):
        try:
            return func(*args, **kwargs)
        finally:
            connection.close()
    return wrapper


@shared_task(name='rewards.calculate_daily_rewards')
@ensure_db_connection_closed
def calculate_daily_rewards(date_ts=None):
    """Score and convert the rewards of one day (yesterday by default)."""
    date_ts = normalize_date_ts(date_ts) if date_ts is not None else yesterday_ts()
    report = RewardsManager().calculate(RewardsQueryOpts(date_ts=date_ts))
    return {
        'date': window_label(date_ts),
        'scored': dict(report.scored),
        'converted': report.converted,
        'disqualified': report.disqualified,
        'failed_reward_types': report.failed_reward_types,
    }


@shared_task(name='rewards.issue_daily_rewards')
@ensure_db_connection_closed
def issue_daily_rewards(date_ts=None, commit=None):
    """Issue payouts for one day; commits only when REWARDS_ISSUE_COMMIT is on."""
    date_ts = normalize_date_ts(date_ts) if date_ts is not None else yesterday_ts()
    if commit is None:
        commit = getattr(settings, 'REWARDS_ISSUE_COMMIT', False)

    report = RewardsManager().issue_tokens(RewardsQueryOpts(date_ts=date_ts), dry_run=not commit)
    if report.failures:
        logger.error("%s payouts failed for %s", len(report.failures), window_label(date_ts))
        raise PayoutError(report.failures)

    return {
        'date': window_label(date_ts),
        'dry_run': report.dry_run,
        'issued': report.issued,
        'skipped_zero': report.skipped_zero,
        'skipped_paid': report.skipped_paid,
    }
