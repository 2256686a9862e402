import redis.asyncio as redis
from loan_pipeline import config
from loan_pipeline.utils import get_logger

logger = get_logger(__name__)


def create_redis_client(url: str = "", password: str = None) -> redis.Redis:
    """Build the shared async client. Responses are decoded to ``str``."""
    url = url or config.REDIS_URL
    logger.info(f" Connecting to Redis at {url}...")
    return redis.from_url(url, password=password or config.REDIS_PASSWORD, decode_responses=True)
