# src/studiorank/scoring/constants.py

"""Fixed tunables of the scoring engine."""

from datetime import timedelta

# A participant created within this many days before the period end is a newcomer
NEWCOMER_WINDOW_DAYS = 120

# Booking statuses that count toward session attendance
ATTENDED_BOOKING_STATUSES = frozenset({"CONFIRMED", "COMPLETED", "NO_SHOW"})

CANCELLED_BOOKING_STATUS = "CANCELLED"

# Decimal places kept on persisted scores and on display breakdown values
SCORE_PRECISION = 4
BREAKDOWN_PRECISION = 2

# Gap between the comparison window's end and the period's start
WINDOW_RESOLUTION = timedelta(microseconds=1)
