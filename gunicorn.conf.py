# gunicorn.conf.py
import os
import logging
import sys
import multiprocessing

# Configure logging to stdout
accesslog = '-'
errorlog = '-'
loglevel = os.getenv('LOG_LEVEL', 'info')

port = os.getenv('PORT', '8080')
bind = f"0.0.0.0:{port}"

# Sync requests are short and I/O bound; a few threads per worker is plenty
cores = multiprocessing.cpu_count()
workers = int(os.getenv('WEB_CONCURRENCY', min(cores * 2 + 1, 6)))
threads = 4

def on_starting(server):
    logger = logging.getLogger('gunicorn.error')
    logger.setLevel(logging.INFO)
    logger.addHandler(logging.StreamHandler(sys.stdout))
    logger.info(f"Starting gunicorn with {workers} workers on port {port}")

timeout = 60
keepalive = 5
worker_class = "gthread"

proc_name = "bibel_api"
default_proc_name = "bibel_api"

# Give workers time to finish an in-flight sync transaction
graceful_timeout = 30
