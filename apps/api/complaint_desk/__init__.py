"""Complaint Desk API: complaint lifecycle, assignment and notifications."""
