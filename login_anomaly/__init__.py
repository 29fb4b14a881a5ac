"""
Login Anomaly Detection Package

Learns a baseline of normal login activity (user, workstation, time of day)
from historical access logs and scores new login batches along three
independent axes: PCA reconstruction error, monthly workstation ownership,
and per-user time-of-day clustering.
"""

__version__ = "0.1.0"
