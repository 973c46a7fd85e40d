# Periodic mention polling in a background thread.

from tweetonium.scheduler.engine import IngestionScheduler

__all__ = ["IngestionScheduler"]
