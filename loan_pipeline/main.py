"""
Main entry point for the loan pipeline processes.
Each role runs as its own process:
- verification: document verification worker
- eligibility: eligibility worker
- api: loan intake HTTP service
"""
import argparse
import asyncio
import signal
import sys

from loan_pipeline import config
from loan_pipeline.app.eligibility_worker import EligibilityWorker
from loan_pipeline.app.polling import PollingTask
from loan_pipeline.app.verification_worker import VerificationWorker
from loan_pipeline.infra.redis_infra import RedisLoanStore, RedisNotifier, RedisQueue, create_redis_client
from loan_pipeline.policies import CeilingEligibilityPolicy, RandomVerificationPolicy
from loan_pipeline.utils import get_logger

logger = get_logger(__name__)

ROLES = ("verification", "eligibility", "api")


def build_worker(role: str, redis_client):
    store = RedisLoanStore(redis_client)
    queue = RedisQueue(redis_client)
    if role == "verification":
        return VerificationWorker(store, queue, RandomVerificationPolicy())
    if role == "eligibility":
        return EligibilityWorker(store, queue, CeilingEligibilityPolicy(), notifier=RedisNotifier(redis_client))
    raise ValueError(f"Unknown worker role: {role}")


async def run_worker(role: str):
    """Poll the role's channel until SIGINT/SIGTERM, then let the current batch finish."""
    logger.info("=" * 60)
    logger.info(f"🚀 Starting {role} worker")
    logger.info("=" * 60)

    redis_client = create_redis_client()
    worker = build_worker(role, redis_client)
    task = PollingTask(f"{role}-worker", worker.poll_once)
    logger.info(f"Consuming {worker.channel} (batch {worker.batch_size}, wait {worker.wait_seconds}s)")

    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        loop.add_signal_handler(sig, task.stop)

    try:
        task.start()
        await task.wait()
    finally:
        await redis_client.aclose()
        logger.info("✓ Redis connection closed")


def main(argv=None):
    parser = argparse.ArgumentParser(description="Loan pipeline process runner")
    parser.add_argument("role", choices=ROLES)
    args = parser.parse_args(argv)

    if args.role == "api":
        import uvicorn
        uvicorn.run("loan_pipeline.api:app", host=config.HOST, port=config.PORT)
        return

    try:
        asyncio.run(run_worker(args.role))
    except KeyboardInterrupt:
        logger.info("✓ Shutdown complete")
        sys.exit(0)


def run_verification():
    main(["verification"])


def run_eligibility():
    main(["eligibility"])


def run_api():
    main(["api"])


if __name__ == "__main__":
    main()
