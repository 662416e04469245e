import os

bind = f"0.0.0.0:{os.getenv('PORT', '8080')}"
worker_class = "uvicorn.workers.UvicornWorker"
workers = int(os.getenv("WEB_CONCURRENCY", "2"))

# one comic request renders its panels one by one; this is its whole wall-clock budget
timeout = int(os.getenv("REQUEST_TIMEOUT", "300"))
graceful_timeout = 60
keepalive = 75

# recycle workers after N requests to bound memory growth
max_requests = int(os.getenv("MAX_REQUESTS", "1000"))
max_requests_jitter = int(os.getenv("MAX_REQUESTS_JITTER", "100"))

# Cloud Run / GKE capture stdout
accesslog = "-"
errorlog = "-"
loglevel = os.getenv("LOG_LEVEL", "info").lower()
