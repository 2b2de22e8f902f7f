"""Escalation trigger handlers.

This module exports all available trigger handlers for the evaluator.
"""

from .complexity import ComplexityTriggerHandler
from .deadline import DeadlineTriggerHandler
from .failure_rate import FailureRateTriggerHandler
from .manual import ManualTriggerHandler
from .sentiment import SentimentTriggerHandler

__all__ = [
    "ComplexityTriggerHandler",
    "DeadlineTriggerHandler",
    "FailureRateTriggerHandler",
    "ManualTriggerHandler",
    "SentimentTriggerHandler",
]
