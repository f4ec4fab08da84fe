"""
Email queue consumer loops.

Two consumers:
- email_consumer_loop: pops jobs from `events:email` and delivers them with
  ResendEmailClient. A failed job goes to the retry list, stamped with the
  time it may be tried again; after MAX_RETRIES it goes to dead-letter.
- email_retry_loop: moves retry jobs back to `events:email` once due.

Started as asyncio tasks in the app lifespan.
"""

import asyncio
import json
import logging
import time

import redis.asyncio as aioredis

from .email import ResendEmailClient
from .notifications import EMAIL_QUEUE

logger = logging.getLogger(__name__)

MAX_RETRIES = 3
RETRY_DELAY = 30  # seconds between attempts of one job
RETRY_QUEUE = f"{EMAIL_QUEUE}:retry"
DEAD_QUEUE = f"{EMAIL_QUEUE}:dead"


async def email_consumer_loop(redis_url: str, client: ResendEmailClient) -> None:
    """
    Consume email jobs from the main queue.

    Uses BRPOP with a 5s timeout to avoid busy-waiting.
    """
    r = aioredis.from_url(redis_url, decode_responses=True)
    logger.info("email_consumer_loop started")

    try:
        while True:
            try:
                result = await r.brpop(EMAIL_QUEUE, timeout=5)
                if result is None:
                    continue

                _, raw = result
                await process_email_job(r, raw, client)

            except asyncio.CancelledError:
                logger.info("email_consumer_loop cancelled")
                raise
            except Exception:
                logger.exception("email_consumer_loop error, retrying in 2s")
                await asyncio.sleep(2)
    finally:
        await r.aclose()


async def process_email_job(r, raw: str, client: ResendEmailClient, now: float | None = None) -> bool:
    """
    Deliver a single job. Returns True when delivered.

    On failure: attempts < MAX_RETRIES → retry queue, otherwise dead-letter.
    """
    try:
        job = json.loads(raw)
    except json.JSONDecodeError:
        logger.error(f"Invalid JSON in email queue: {raw[:200]}")
        await r.rpush(DEAD_QUEUE, raw)
        return False

    attempt = job.get("_attempt", 1)

    try:
        delivered = await client.deliver(job["to"], job["subject"], job["html"])
    except Exception:
        logger.exception(f"Email delivery crashed type={job.get('type')}")
        delivered = False

    if delivered:
        logger.info(f"Email delivered: type={job.get('type')}")
        return True

    if attempt < MAX_RETRIES:
        job["_attempt"] = attempt + 1
        job["_retry_at"] = (time.time() if now is None else now) + RETRY_DELAY
        await r.rpush(RETRY_QUEUE, json.dumps(job))
        logger.info(f"Email re-queued to {RETRY_QUEUE} (attempt {attempt + 1})")
    else:
        job.pop("_retry_at", None)
        await r.rpush(DEAD_QUEUE, json.dumps(job))
        logger.warning(f"Email moved to dead-letter queue: type={job.get('type')}")
    return False


async def move_due_retries(r, now: float | None = None) -> int:
    """
    Move retry jobs whose delay has passed back to the main queue.

    The retry list is in push order and every job waits the same RETRY_DELAY,
    so the head is always the next one due. Returns how many jobs moved.
    """
    now = time.time() if now is None else now
    moved = 0
    while True:
        raw = await r.lpop(RETRY_QUEUE)
        if raw is None:
            return moved

        try:
            retry_at = json.loads(raw).get("_retry_at", 0)
        except json.JSONDecodeError:
            retry_at = 0

        if retry_at > now:
            await r.lpush(RETRY_QUEUE, raw)
            return moved

        await r.lpush(EMAIL_QUEUE, raw)
        moved += 1
        logger.info(f"Retry: moved email job from {RETRY_QUEUE} → {EMAIL_QUEUE}")


async def email_retry_loop(redis_url: str) -> None:
    """
    Re-queue failed email jobs once their retry delay has passed.
    """
    r = aioredis.from_url(redis_url, decode_responses=True)
    logger.info("email_retry_loop started")

    try:
        while True:
            try:
                await move_due_retries(r)
                await asyncio.sleep(5)

            except asyncio.CancelledError:
                logger.info("email_retry_loop cancelled")
                raise
            except Exception:
                logger.exception("email_retry_loop error, retrying in 5s")
                await asyncio.sleep(5)
    finally:
        await r.aclose()
