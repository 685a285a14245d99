"""RFID class attendance package.

Organized by feature modules (schedules, attendance, scans, alerts, ...)
with a thin Flask controller layer over service/repository layers.
"""
