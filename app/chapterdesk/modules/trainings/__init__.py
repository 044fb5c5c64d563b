"""Trainings module (admin-only): scheduled trainings with date, time slot and venue."""
