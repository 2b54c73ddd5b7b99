"""
Periodic push notification dispatcher.

This module handles:
- Resolving the business-local time of each tick
- Loading notification rules and claiming each rule once per day
- Evaluating rule conditions against enrollments, invoices and quotes
- Composing push payloads and fanning them out to every registered device
- Sending per-user focus-mode briefings to that user's devices only
"""

from .conditions import evaluate_rule, register_condition
from .dispatcher import dispatch
from .process_tick import run_tick

__all__ = [
    'evaluate_rule',
    'register_condition',
    'dispatch',
    'run_tick',
]
