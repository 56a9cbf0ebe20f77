# signalist/tasks/scheduler.py
from apscheduler.schedulers.asyncio import AsyncIOScheduler

from signalist.core.config import settings
from signalist.logger import get_logger
from signalist.tasks.daily_digest import run_daily_news_digest

log = get_logger(__name__)
_scheduler: AsyncIOScheduler | None = None

DIGEST_JOB_ID = "daily_news_digest"


async def job_daily_digest():
    """Scheduled wrapper: a failing run is logged, the next one still fires."""
    try:
        log.info("[SCHEDULE] running daily news digest")
        summary = await run_daily_news_digest()
        log.info("[SCHEDULE] daily digest done: %s", summary)
    except Exception as e:
        log.exception("[SCHEDULE] daily digest failed: %s", e)


def start_scheduler() -> AsyncIOScheduler:
    """Start the scheduler once; later calls return the running instance."""
    global _scheduler
    if _scheduler:
        return _scheduler

    _scheduler = AsyncIOScheduler(timezone="UTC")
    _scheduler.add_job(
        job_daily_digest,
        "cron",
        hour=settings.DAILY_DIGEST_HOUR,
        minute=0,
        id=DIGEST_JOB_ID,
        max_instances=1,
        coalesce=True,
    )
    _scheduler.start()
    log.info("[SCHEDULE] started: daily digest at %02d:00 UTC", settings.DAILY_DIGEST_HOUR)
    return _scheduler


def shutdown_scheduler():
    """Shutdown scheduler"""
    global _scheduler
    if _scheduler:
        _scheduler.shutdown(wait=False)
        log.info("[SCHEDULE] stopped")
        _scheduler = None


def get_scheduler_status():
    """Get current scheduler status and job info"""
    if not _scheduler:
        return {"running": False, "jobs": []}

    jobs = []
    for job in _scheduler.get_jobs():
        jobs.append({
            "id": job.id,
            "name": job.name or str(job.func),
            "next_run": job.next_run_time,
            "trigger": str(job.trigger),
        })

    return {
        "running": _scheduler.running,
        "jobs": jobs,
        "digest_hour": settings.DAILY_DIGEST_HOUR,
    }
