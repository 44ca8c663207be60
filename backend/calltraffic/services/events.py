import json
import logging
from typing import Optional

import redis
from redis.exceptions import ConnectionError

from calltraffic.core.config import settings

logger = logging.getLogger(__name__)

CHANNEL = "events"


class EventPublisher:
    def __init__(self, redis_url: Optional[str] = None, channel: str = CHANNEL) -> None:
        self.channel = channel
        self.client = redis.Redis.from_url(redis_url or settings.redis_url, decode_responses=True)

    def __call__(self, payload: dict) -> None:
        try:
            self.client.publish(self.channel, json.dumps(payload, default=str))
        except ConnectionError:
            logger.warning("Redis unavailable; dropped %s event", payload.get("type"))
