import multiprocessing
import os

# Gunicorn configuration file
# FastAPI runs under the UvicornWorker; start with:
#   gunicorn app.main:app -c gunicorn_conf.py

bind = os.getenv("BIND", "0.0.0.0:8000")

# Standard formula: (2 x num_cores) + 1
# Recurring jobs are registered by one worker only (see SCHEDULER_LOCK_FILE)
workers = int(os.getenv("WEB_CONCURRENCY", multiprocessing.cpu_count() * 2 + 1))
worker_class = "uvicorn.workers.UvicornWorker"

timeout = 120
keepalive = 5

# Logging
accesslog = "-"  # stdout
errorlog = "-"   # stderr
loglevel = os.getenv("LOG_LEVEL", "info").lower()

name = "todo_list_api"
reload = False  # development only
