"""setpace: workout session tracking with durable timers and streaks."""

__version__ = "0.1.0"
