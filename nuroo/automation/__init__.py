"""Automation - local notifications and periodic task generation

Components:
    notify.py: Notifier (immediate and daily scheduled notifications)
    runner.py: BackgroundTaskRunner (hourly generation check)
"""
