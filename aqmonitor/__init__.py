"""Air Quality Monitor notifications: alert policy, paced delivery and account messages."""

__version__ = "0.1.0"
