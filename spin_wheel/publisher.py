"""
Redis Publisher for Round Events
Broadcasts round commitments and settled outcomes to listening clients
"""

import json
import logging

import redis

from .config import REDIS_URL, ROUND_EVENTS_CHANNEL

logger = logging.getLogger(__name__)


class RoundEventPublisher:
    """
    Best-effort event publisher

    Disabled when no Redis URL is configured or Redis is unreachable;
    publish failures are logged and reported as False.
    """

    def __init__(self, redis_url=REDIS_URL, client=None, channel=ROUND_EVENTS_CHANNEL):
        self.channel = channel
        self.client = client
        self.enabled = client is not None

        if client is None and redis_url:
            if '://' not in redis_url:
                redis_url = f'redis://{redis_url}'
            try:
                self.client = redis.from_url(redis_url, decode_responses=True)
                self.client.ping()
                self.enabled = True
                logger.info("✅ Round event publisher connected to Redis")
            except (redis.RedisError, ValueError) as e:
                logger.warning(f"⚠️ Redis unavailable for round events: {e}")
                self.enabled = False
        elif client is None:
            logger.debug("REDIS_URL not set, round events will not be published")

    def publish(self, action, data=None):
        """Publish an event to the round channel"""
        if not self.enabled:
            return False

        try:
            message = json.dumps({
                'action': action,
                'data': data or {}
            })
            self.client.publish(self.channel, message)
            logger.debug(f"📤 Published to {self.channel}: {action}")
            return True
        except redis.RedisError as e:
            logger.error(f"❌ Failed to publish to {self.channel}: {e}")
            return False

    def publish_round_opened(self, round_id, nonce, server_seed_hash, client_seed):
        """Announce a new round and its commitment"""
        return self.publish('round_opened', {
            'round_id': round_id,
            'nonce': nonce,
            'server_seed_hash': server_seed_hash,
            'client_seed': client_seed,
        })

    def publish_round_settled(self, record):
        """Announce a settled round with everything needed to verify it"""
        return self.publish('round_settled', record.to_dict())

    def publish_round_cancelled(self, round_id, revealed_server_seed):
        return self.publish('round_cancelled', {
            'round_id': round_id,
            'revealed_server_seed': revealed_server_seed,
        })
