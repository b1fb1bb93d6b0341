"""
Gunicorn configuration file for production deployment.
Run with: gunicorn -c gunicorn.conf.py app:app
"""

import os

# Server socket
bind = f"{os.environ.get('HOST', '0.0.0.0')}:{os.environ.get('PORT', '3000')}"
backlog = 2048

# Worker processes
# One worker: the channel config lives in process memory and each
# worker would log in its own bot connection.
workers = 1
worker_class = 'gthread'
threads = int(os.environ.get('THREADS', 4))
timeout = 180
keepalive = 5
graceful_timeout = 30

# Process naming
proc_name = 'videowiper'

# Logging
accesslog = os.environ.get('ACCESS_LOG', '-')  # '-' means stdout
errorlog = os.environ.get('ERROR_LOG', '-')
loglevel = os.environ.get('LOG_LEVEL', 'info')
access_log_format = '%(h)s %(l)s %(u)s %(t)s "%(r)s" %(s)s %(b)s "%(f)s" "%(a)s" %(D)s'


# Hooks
def on_starting(server):
    """Called just before the master process is initialized."""
    print("=" * 60)
    print("📼 videoWiper - Production Server")
    print("=" * 60)
    print(f"Starting with {workers} worker ({worker_class}, {threads} threads)")


def post_worker_init(worker):
    """Log the bot in once the worker has loaded the app."""
    from app import get_relay
    get_relay()


def worker_exit(server, worker):
    """Disconnect the bot when the worker stops."""
    from app import shutdown_relay
    shutdown_relay()


def on_exit(server):
    """Called just before exiting Gunicorn."""
    print("Server shutting down...")
