"""Workout-program scheduling engine."""
