"""Gunicorn configuration for a small single-CPU instance.

- 2 uvicorn workers: handles worker crashes gracefully
- max_requests: prevents memory leaks over time

The app is not preloaded: each worker builds its own data store in the
lifespan, and the in-memory backend is per process anyway.
"""

import multiprocessing
import os

# Bind to the platform's PORT
bind = f"0.0.0.0:{os.environ.get('PORT', '8000')}"
wsgi_app = "kickabout.api.main:app"

# Workers: 2 for 1 CPU (1 active + 1 for graceful restarts/crash recovery)
workers = min(2, multiprocessing.cpu_count() + 1)
worker_class = "uvicorn.workers.UvicornWorker"

# Memory management: restart workers after N requests to prevent leaks
max_requests = 1000
max_requests_jitter = 50

# Timeouts
timeout = 60
graceful_timeout = 30
keepalive = 5

# Logging
accesslog = "-"
errorlog = "-"
loglevel = os.environ.get("LOG_LEVEL", "info").lower()
