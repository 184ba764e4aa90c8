"""HTTP API - FastAPI app exposing tasks, progress, chat and limits

Components:
    main.py: application factory and lifespan
    models.py: request/response models
    deps.py: access to the wired Services
    routes/: endpoint groups mounted under /api
"""
