from tweetonium.lifecycle.controller import LifecycleController

__all__ = ["LifecycleController"]
