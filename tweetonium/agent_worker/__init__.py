"""
Agent worker package: background mention polling.

Builds the app from settings, runs the ingestion scheduler and coordinates
signal-driven shutdown. Entry point: python -m tweetonium.agent_worker.runtime
"""
