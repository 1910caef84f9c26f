"""Scheduling driver for recurring snapshot runs.

This package triggers the pipeline on a weekly cadence, enforces
single-flight execution, and delivers run outcomes to notifiers.
"""
