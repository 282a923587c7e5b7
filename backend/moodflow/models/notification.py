"""
Notification Settings Schema
============================
Reminder times per segment. MoodFlow only reads these to decide which
segment is currently writable: midday opens at ``midday_time`` and evening
at ``evening_time``. Morning is open from midnight.
"""

from __future__ import annotations

from datetime import time

from pydantic import BaseModel


class NotificationSettings(BaseModel):
    enabled: bool = True
    morning_time: time = time(0, 0)
    midday_time: time = time(12, 0)
    evening_time: time = time(18, 0)
