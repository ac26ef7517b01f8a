"""
Gunicorn configuration for the ObservePoint console.

Usage:
    gunicorn -c gunicorn.conf.py wsgi:application

All values are overridable via GUNICORN_* environment variables.
"""

import os
import multiprocessing

# =============================================================================
# WORKERS
# =============================================================================

# Requests block on the ObservePoint API, so threaded workers fit best
worker_class = os.environ.get("GUNICORN_WORKER_CLASS", "gthread")


def get_workers():
    env_workers = os.environ.get("GUNICORN_WORKERS")
    if env_workers:
        return int(env_workers)
    # One SQLite file backs local storage; keep the process count small
    return max(min(multiprocessing.cpu_count() + 1, 4), 2)


workers = get_workers()
threads = int(os.environ.get("GUNICORN_THREADS", "4"))


# =============================================================================
# TIMEOUTS
# =============================================================================

# Saving a validation issues one API call per action, one after another,
# each bounded by OBSERVEPOINT_REQUEST_TIMEOUT_SECONDS.
timeout = int(os.environ.get("GUNICORN_TIMEOUT", "180"))
graceful_timeout = int(os.environ.get("GUNICORN_GRACEFUL_TIMEOUT", "30"))
keepalive = int(os.environ.get("GUNICORN_KEEPALIVE", "5"))

max_requests = int(os.environ.get("GUNICORN_MAX_REQUESTS", "1000"))
max_requests_jitter = int(os.environ.get("GUNICORN_MAX_REQUESTS_JITTER", "50"))


# =============================================================================
# NETWORK
# =============================================================================

bind = os.environ.get("GUNICORN_BIND", "127.0.0.1:5000")

# The app applies ProxyFix; trust forwarded headers from the local proxy only
forwarded_allow_ips = os.environ.get("GUNICORN_FORWARDED_ALLOW_IPS", "127.0.0.1")


# =============================================================================
# LOGGING
# =============================================================================

loglevel = os.environ.get("GUNICORN_LOGLEVEL", os.environ.get("LOG_LEVEL", "info").lower())
accesslog = os.environ.get("GUNICORN_ACCESS_LOG", "-")
errorlog = os.environ.get("GUNICORN_ERROR_LOG", "-")
capture_output = os.environ.get("GUNICORN_CAPTURE_OUTPUT", "true").lower() == "true"

reload = os.environ.get("GUNICORN_RELOAD", "false").lower() == "true"


def on_starting(server):
    import logging
    logging.getLogger("gunicorn").info(
        f"Starting ObservePoint console with {workers} workers, "
        f"worker_class={worker_class}, threads={threads}"
    )


def worker_abort(worker):
    """Called when a worker exceeds `timeout`, usually a slow ObservePoint API."""
    import logging
    logging.getLogger("gunicorn").error(f"Worker {worker.pid} aborted (timeout?)")
