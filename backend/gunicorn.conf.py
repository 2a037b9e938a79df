import os

# Bind & workers
bind = os.getenv("GUNICORN_BIND", "0.0.0.0:8000")
workers = int(os.getenv("GUNICORN_WORKERS", "2"))
threads = int(os.getenv("GUNICORN_THREADS", "2"))
timeout = 60
graceful_timeout = 30
keepalive = 5

# Logs to stdout/stderr; application logs are JSON lines
accesslog = "-"
errorlog = "-"
loglevel = os.getenv("LOG_LEVEL", "info").lower()

# Honour X-Forwarded-* (ProxyFix runs in the app)
forwarded_allow_ips = "*"
proxy_protocol = False

wsgi_app = "fancy_todo.factory:create_app()"
