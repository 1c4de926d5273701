"""
Gunicorn configuration for the placement API
Run with: gunicorn placement_api.main:app -c gunicorn.conf.py
"""
import os

# Server socket
bind = os.getenv("GUNICORN_BIND", "0.0.0.0:4000")
backlog = 1024

# Uvicorn workers; each keeps its own database pool of DATABASE_POOL_SIZE connections
workers = int(os.getenv("GUNICORN_WORKERS", 2))
worker_class = "uvicorn.workers.UvicornWorker"

# Worker lifecycle
max_requests = 2000
max_requests_jitter = 200

# Timeouts; bulk uploads parse whole sheets inside the request
timeout = int(os.getenv("GUNICORN_TIMEOUT", 60))
keepalive = 5
graceful_timeout = 30

# Process naming
proc_name = "placement_api"

# Server mechanics
daemon = False
pidfile = None

# Logging; application lines are already JSON from structlog
accesslog = "-"
errorlog = "-"
loglevel = os.getenv("LOG_LEVEL", "info").lower()
access_log_format = '%(h)s "%(r)s" %(s)s %(b)s %(D)s'


def when_ready(server):
    """Called just after the server is started."""
    server.log.info("Placement API ready on %s with %s workers", bind, workers)


def worker_abort(worker):
    """Called when a worker is aborted (usually a request over the timeout)."""
    worker.log.warning("Worker %s aborted", worker.pid)
