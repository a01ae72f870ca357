import logging
import uuid
from datetime import timedelta

from apscheduler.events import EVENT_JOB_ERROR, EVENT_JOB_EXECUTED, EVENT_JOB_MISSED
from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.cron import CronTrigger
from sqlalchemy import delete, select, true
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from sqlalchemy.orm import joinedload

from app.config import Settings
from app.database import AsyncSessionLocal
from app.models.category import Category
from app.models.tasks import TaskStatus, TodoTask
from app.models.user import User
from app.repositories.base import active
from app.utils.clock import start_of_today_utc, utcnow

logger = logging.getLogger(__name__)

OVERDUE_REMINDERS_JOB_ID = "send-overdue-reminders"
CLEANUP_JOB_ID = "cleanup-deleted-records"

DEFAULT_RETENTION_DAYS = 30


async def send_overdue_reminders(session_factory: async_sessionmaker[AsyncSession] = AsyncSessionLocal) -> int:
    """Log a reminder for every live task that is past due and still open.

    Open means neither Completed nor Cancelled. Nothing is sent yet; each
    reminder is a log line. Returns the number of reminders.
    """
    logger.info("Starting overdue task reminders job at %s", utcnow().isoformat())
    async with session_factory() as db:
        try:
            result = await db.execute(
                select(TodoTask)
                .options(joinedload(TodoTask.user))
                .where(
                    active(TodoTask),
                    TodoTask.status.not_in([TaskStatus.COMPLETED, TaskStatus.CANCELLED]),
                    TodoTask.due_date.is_not(None),
                    TodoTask.due_date < start_of_today_utc(),
                )
                .order_by(TodoTask.due_date)
            )
            overdue_tasks = result.scalars().all()
            logger.info("Found %d overdue tasks", len(overdue_tasks))

            for task in overdue_tasks:
                logger.info(
                    "Reminder: Task '%s' (ID: %s) is overdue for user %s. Due date was %s",
                    task.title,
                    task.id,
                    task.user.email,
                    task.due_date,
                )

            logger.info("Completed overdue task reminders job")
            return len(overdue_tasks)

        except Exception:
            logger.exception("Error occurred while sending overdue task reminders")
            raise


async def cleanup_soft_deleted(
    session_factory: async_sessionmaker[AsyncSession] = AsyncSessionLocal,
    retention_days: int = DEFAULT_RETENTION_DAYS,
) -> dict[str, int]:
    """Hard-delete rows soft-deleted more than ``retention_days`` ago.

    Each table is purged on its own; the foreign keys (cascade for owners,
    set-null for task categories) keep the remaining rows consistent.
    """
    logger.info("Starting cleanup of soft-deleted records at %s", utcnow().isoformat())
    cutoff = utcnow() - timedelta(days=retention_days)
    purged = {}

    async with session_factory() as db:
        try:
            for label, model in (("users", User), ("categories", Category), ("tasks", TodoTask)):
                result = await db.execute(
                    delete(model)
                    .where(
                        model.is_deleted == true(),
                        model.deleted_at.is_not(None),
                        model.deleted_at < cutoff,
                    )
                    .execution_options(synchronize_session=False)
                )
                purged[label] = result.rowcount or 0
                if purged[label]:
                    logger.info("Permanently deleted %d %s", purged[label], label)

            await db.commit()
            logger.info("Completed cleanup of soft-deleted records")
            return purged

        except Exception:
            await db.rollback()
            logger.exception("Error occurred while cleaning up soft-deleted records")
            raise


def _log_job_event(event):
    if event.exception:
        # The scheduler records the run as failed; no retry
        logger.error("Job %s failed: %r", event.job_id, event.exception)
    elif event.code == EVENT_JOB_MISSED:
        logger.warning("Job %s missed its run time", event.job_id)
    else:
        logger.info("Job %s finished", event.job_id)


def create_scheduler() -> AsyncIOScheduler:
    scheduler = AsyncIOScheduler(timezone="UTC")
    scheduler.add_listener(_log_job_event, EVENT_JOB_EXECUTED | EVENT_JOB_ERROR | EVENT_JOB_MISSED)
    return scheduler


def register_recurring_jobs(scheduler: AsyncIOScheduler, settings: Settings) -> None:
    scheduler.add_job(
        send_overdue_reminders,
        trigger=CronTrigger(hour=9, minute=0, timezone="UTC"),
        id=OVERDUE_REMINDERS_JOB_ID,
        replace_existing=True,
    )
    scheduler.add_job(
        cleanup_soft_deleted,
        trigger=CronTrigger(day_of_week="sun", hour=2, minute=0, timezone="UTC"),  # Sundays at 2 AM
        kwargs={"retention_days": settings.CLEANUP_RETENTION_DAYS},
        id=CLEANUP_JOB_ID,
        replace_existing=True,
    )


def enqueue_job(scheduler: AsyncIOScheduler, func, delay_minutes: int = 0, **kwargs) -> str:
    """Run a job once, now or after ``delay_minutes``. Returns the job id."""
    job_id = str(uuid.uuid4())
    run_date = utcnow() + timedelta(minutes=delay_minutes)
    scheduler.add_job(
        func,
        trigger="date",
        run_date=run_date,
        kwargs=kwargs,
        id=job_id,
        misfire_grace_time=None,
    )
    logger.info("Enqueued job %s (%s) to run at %s", job_id, func.__name__, run_date.isoformat())
    return job_id


def setup_scheduler(settings: Settings, register_recurring: bool = True) -> AsyncIOScheduler:
    scheduler = create_scheduler()
    if register_recurring:
        register_recurring_jobs(scheduler, settings)
        logger.info("Recurring background jobs configured")
    scheduler.start()
    return scheduler
