"""
Celery beat schedules for the daily reward ledger
"""
from celery.schedules import crontab

REWARDS_CELERY_BEAT_SCHEDULE = {
    # Score yesterday's contributions and split the daily pools
    'calculate-daily-rewards': {
        'task': 'rewards.calculate_daily_rewards',
        'schedule': crontab(hour=0, minute=15),
    },

    # Pay out yesterday's calculated rewards (simulated unless REWARDS_ISSUE_COMMIT)
    'issue-daily-rewards': {
        'task': 'rewards.issue_daily_rewards',
        'schedule': crontab(hour=1, minute=0),
    },
}
