from apscheduler.schedulers.asyncio import AsyncIOScheduler
from fastapi import APIRouter, Depends, Query

from app.config import Settings, get_settings
from app.dependencies import get_current_user, get_scheduler
from app.schemas.common import JobResponse
from app.services.scheduler import cleanup_soft_deleted, enqueue_job, send_overdue_reminders

router = APIRouter(prefix="/background-jobs", tags=["background-jobs"], dependencies=[Depends(get_current_user)])


@router.post("/trigger-overdue-reminders", response_model=JobResponse)
async def trigger_overdue_reminders(scheduler: AsyncIOScheduler = Depends(get_scheduler)):
    job_id = enqueue_job(scheduler, send_overdue_reminders)
    return JobResponse(message="Overdue reminders job triggered", job_id=job_id)


@router.post("/trigger-cleanup", response_model=JobResponse)
async def trigger_cleanup(
    scheduler: AsyncIOScheduler = Depends(get_scheduler),
    settings: Settings = Depends(get_settings),
):
    job_id = enqueue_job(scheduler, cleanup_soft_deleted, retention_days=settings.CLEANUP_RETENTION_DAYS)
    return JobResponse(message="Cleanup job triggered", job_id=job_id)


@router.post("/schedule-reminder", response_model=JobResponse)
async def schedule_reminder(
    delay_minutes: int = Query(5, alias="delayMinutes", ge=0),
    scheduler: AsyncIOScheduler = Depends(get_scheduler),
):
    job_id = enqueue_job(scheduler, send_overdue_reminders, delay_minutes=delay_minutes)
    return JobResponse(message=f"Reminder scheduled in {delay_minutes} minutes", job_id=job_id)
