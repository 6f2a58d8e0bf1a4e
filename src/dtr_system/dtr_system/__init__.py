"""DTR System package.

Daily time records for trainees and scholars: schedule parsing, conflict-checked
duty hours, per-day confirmation workflow and capped monthly totals. Organized by
feature modules (schedules, attendance, totals, ...) with a thin Flask JSON
controller layer over service/repository layers.
"""
