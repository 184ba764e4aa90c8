"""Local persistence - key-value blobs and offline copies on this device

Components:
    local.py: sqlite-backed JSON key-value store
    offline.py: offline copies of tasks, progress and the child profile
"""
