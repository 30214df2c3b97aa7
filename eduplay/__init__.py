"""EduPlay core: subscriptions, learning progress and achievements"""

__version__ = "0.1.0"
