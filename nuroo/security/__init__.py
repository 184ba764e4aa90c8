"""Security tools - request throttling and input sanitisation

Components:
    ratelimit.py: fixed-window counters per user and category (fails open)
    sanitizer.py: child profile validation and prompt cleanup
"""
