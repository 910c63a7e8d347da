"""
Utilities Package for Uptime Monitor

Logging setup, time/string helpers and field validators.
"""
