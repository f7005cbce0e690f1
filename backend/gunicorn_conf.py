# backend/gunicorn_conf.py

# Gunicorn config file

import os

# Basic configuration
wsgi_app = "kaani.main:app"
bind = os.getenv("BIND", "0.0.0.0:8000")
# Per-conversation turn locks are process-local: run one worker unless
# conversations are pinned to workers by the proxy
workers = int(os.getenv("WEB_CONCURRENCY", "1"))
worker_class = "uvicorn.workers.UvicornWorker"
# Must exceed the generation timeout so slow turns still get a fallback reply
timeout = int(os.getenv("GUNICORN_TIMEOUT", "60"))

# Settings for running behind a reverse proxy like Nginx
forwarded_allow_ips = "*"

# --- Logging ---
accesslog = "-"
errorlog = "-"
loglevel = os.getenv("LOG_LEVEL", "info")
