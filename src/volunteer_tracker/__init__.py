"""Volunteer Tracker package.

Organized by feature modules (users, shifts, groups, attendance, hours)
with a thin Flask controller layer over service/repository layers.
"""
