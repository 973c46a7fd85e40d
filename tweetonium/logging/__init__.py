"""
Structured logging for Tweetonium: get_logger() everywhere, JSON by default.
"""

from tweetonium.logging.logger import bind_artifact, bind_context, configure_logging, get_logger

__all__ = ["bind_artifact", "bind_context", "configure_logging", "get_logger"]
