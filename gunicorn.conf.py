"""Gunicorn configuration for production deployment.

Reads the same environment variables as media_resolver/core/config.py.

Usage:
    gunicorn media_resolver.main:app -c gunicorn.conf.py
"""
import os
import multiprocessing

host = os.getenv("HOST", "0.0.0.0")
port = os.getenv("SERVER_PORT", "8080")
workers_env = os.getenv("WORKERS", "1")  # 0 = auto-calculate
log_level = os.getenv("LOG_LEVEL", "INFO").lower()
debug = os.getenv("DEBUG", "false").lower() == "true"

bind = f"{host}:{port}"

# WORKERS=0 means auto (2 * cpu + 1), WORKERS=N means use N.
# Each worker holds its own rate limiter bucket, so the effective limit is
# RATE_LIMIT_REQUESTS_PER_SECOND * workers.
workers_count = int(workers_env)
workers = workers_count if workers_count > 0 else (multiprocessing.cpu_count() * 2 + 1)
worker_class = "uvicorn.workers.UvicornWorker"

timeout = int(os.getenv("GUNICORN_TIMEOUT", "30"))
graceful_timeout = int(os.getenv("GUNICORN_GRACEFUL_TIMEOUT", "30"))
keepalive = int(os.getenv("GUNICORN_KEEPALIVE", "5"))

max_requests = int(os.getenv("GUNICORN_MAX_REQUESTS", "10000"))
max_requests_jitter = int(os.getenv("GUNICORN_MAX_REQUESTS_JITTER", "1000"))

accesslog = "-" if not debug else None
errorlog = "-"
loglevel = log_level

proc_name = "media-resolver"

preload_app = not debug
