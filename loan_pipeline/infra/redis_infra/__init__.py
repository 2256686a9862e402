"""
Redis infrastructure - Record store, message queue and notifier.

All three pipeline collaborators share one Redis connection:
- loan_store: loan records and the conditional status update
- message_queue: channels with at-least-once delivery and a visibility timeout
- notifier: pub/sub fan-out of approval events
"""

from loan_pipeline.infra.redis_infra.redis_client import create_redis_client
from loan_pipeline.infra.redis_infra.loan_store import RedisLoanStore
from loan_pipeline.infra.redis_infra.message_queue import RedisQueue
from loan_pipeline.infra.redis_infra.notifier import RedisNotifier

__all__ = ['create_redis_client', 'RedisLoanStore', 'RedisQueue', 'RedisNotifier']
