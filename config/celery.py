import logging
import os

from celery import Celery, signals

# set the default Django settings module for the 'celery' program.
os.environ.setdefault('DJANGO_SETTINGS_MODULE', 'config.settings')

logger = logging.getLogger(__name__)

app = Celery('rewards_ledger')

# - namespace='CELERY' means all celery-related configuration keys
#   should have a `CELERY_` prefix.
app.config_from_object('django.conf:settings', namespace='CELERY')

# Load task modules from all registered Django app configs.
app.autodiscover_tasks()


@app.on_after_finalize.connect
def _install_reward_schedules(sender, **kwargs):
    from rewards.celery_schedules import REWARDS_CELERY_BEAT_SCHEDULE

    sender.conf.beat_schedule.update(REWARDS_CELERY_BEAT_SCHEDULE)


@signals.task_prerun.connect
def _celery_prerun_close_stale_conns(*args, **kwargs):
    from django.db import close_old_connections

    # Drop any stale/dangling DB connections before the task starts
    close_old_connections()


@signals.task_postrun.connect
def _celery_postrun_close_all_conns(*args, **kwargs):
    from django.db import connections

    # Batch tasks hold a connection for a long time; release it after each run
    for conn in connections.all():
        try:
            conn.close()
        except Exception as exc:
            logger.warning("Failed to close DB connection %s: %s", conn.alias, exc)
