"""Shift lifecycle and payroll engine.

This package is organized by feature modules (worklogs, shifts, payroll, ...)
with repository protocols at the edges and plain services in the middle, so the
same core can run against MySQL, an offline snapshot or in-memory fakes.
"""
