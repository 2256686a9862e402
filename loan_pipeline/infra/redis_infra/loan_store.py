from datetime import datetime
from decimal import Decimal, InvalidOperation
from typing import List, Optional

import redis.asyncio as redis
from redis.exceptions import WatchError

from loan_pipeline import config
from loan_pipeline.models import Action, LoanRecord, LoanStatus, utcnow
from loan_pipeline.state_machine import INITIAL_STATUS, check_transition
from loan_pipeline.utils import get_logger

logger = get_logger(__name__)


class RedisLoanStore:
    """Loan records kept as one Redis hash per loan.

    Keys (with the default ``loan`` prefix):
    - ``loan:seq``    id counter
    - ``loan:index``  sorted set of ids
    - ``loan:{id}``   hash with the record fields

    The status field is the only value two workers may race on. It is only
    ever changed through ``compare_and_set_status``.
    """

    def __init__(self, redis_client: redis.Redis, prefix: str = ""):
        self.redis = redis_client
        self.prefix = prefix or config.LOAN_KEY_PREFIX

    def _key(self, loan_id: int) -> str:
        return f"{self.prefix}:{loan_id}"

    async def create(self, user_id: int, amount, address: str) -> LoanRecord:
        try:
            amount = Decimal(str(amount))
        except InvalidOperation:
            raise ValueError(f"Invalid loan amount: {amount}")
        if amount <= 0:
            raise ValueError(f"Loan amount must be positive, got {amount}")
        if not address or not address.strip():
            raise ValueError("Property address must not be empty")

        loan_id = await self.redis.incr(f"{self.prefix}:seq")
        record = LoanRecord(
            id=loan_id,
            user_id=user_id,
            amount=amount,
            address=address,
            status=INITIAL_STATUS,
            created_at=utcnow(),
        )

        async with self.redis.pipeline(transaction=True) as pipe:
            pipe.hset(self._key(loan_id), mapping={
                "id": loan_id,
                "user_id": user_id,
                "amount": str(amount),
                "address": address,
                "status": record.status.value,
                "created_at": record.created_at.isoformat(),
            })
            pipe.zadd(f"{self.prefix}:index", {str(loan_id): loan_id})
            await pipe.execute()

        logger.info(f"Loan {loan_id} created for user {user_id}, amount {amount}")
        return record

    async def get(self, loan_id: int) -> Optional[LoanRecord]:
        data = await self.redis.hgetall(self._key(loan_id))
        if not data:
            return None
        return LoanRecord(
            id=int(data["id"]),
            user_id=int(data["user_id"]),
            amount=self._parse_amount(loan_id, data.get("amount")),
            address=data.get("address", ""),
            status=LoanStatus(data["status"]),
            created_at=datetime.fromisoformat(data["created_at"]),
        )

    @staticmethod
    def _parse_amount(loan_id: int, raw: Optional[str]) -> Optional[Decimal]:
        if not raw:
            return None
        try:
            amount = Decimal(raw)
        except InvalidOperation:
            amount = None
        if amount is None or not amount.is_finite():
            logger.warning(f"Loan {loan_id} has a non-numeric amount: {raw!r}")
            return None
        return amount

    async def get_status(self, loan_id: int) -> Optional[LoanStatus]:
        status = await self.redis.hget(self._key(loan_id), "status")
        return LoanStatus(status) if status else None

    async def list(self) -> List[LoanRecord]:
        ids = await self.redis.zrange(f"{self.prefix}:index", 0, -1)
        records = []
        for loan_id in ids:
            record = await self.get(int(loan_id))
            if record is not None:
                records.append(record)
        return records

    async def compare_and_set_status(self, loan_id: int, expected: LoanStatus, new: LoanStatus) -> bool:
        """Set the status to ``new`` only if it currently equals ``expected``.

        Returns False, without writing, when the loan does not exist or its
        status is anything other than ``expected``.
        """
        check_transition(expected, new)
        key = self._key(loan_id)

        async with self.redis.pipeline(transaction=True) as pipe:
            while True:
                try:
                    await pipe.watch(key)
                    current = await pipe.hget(key, "status")
                    if current != expected.value:
                        await pipe.unwatch()
                        logger.debug(
                            f"Loan {loan_id}: status is {current}, expected {expected.value}; "
                            f"not moving to {new.value}"
                        )
                        return False
                    pipe.multi()
                    pipe.hset(key, mapping={"status": new.value, "updated_at": utcnow().isoformat()})
                    await pipe.execute()
                    logger.info(f"Loan {loan_id} status {expected.value} -> {new.value}")
                    return True
                except WatchError:
                    # status changed between WATCH and EXEC, re-read it
                    logger.debug(f"Loan {loan_id} modified concurrently, retrying status check")
                    continue

    async def mark_handoff(self, loan_id: int, action: Action) -> None:
        """Record that the ``action`` message for this loan was enqueued."""
        await self.redis.hset(self._key(loan_id), f"handoff:{action.value}", utcnow().isoformat())

    async def has_handoff(self, loan_id: int, action: Action) -> bool:
        return bool(await self.redis.hexists(self._key(loan_id), f"handoff:{action.value}"))
