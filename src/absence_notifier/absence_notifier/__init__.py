"""Absence Notifier package.

Hourly detection of students with no attendance record, auto-marking them
absent and notifying guardians (WhatsApp first, SMS fallback). Organized by
feature modules (tenants, students, attendance, notifications, scheduler)
with a thin Flask controller layer over service/repository layers.
"""
