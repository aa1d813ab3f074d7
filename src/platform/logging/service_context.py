"""Process identity stamped on every log line."""

from functools import lru_cache
import os
import socket


@lru_cache(maxsize=1)
def get_service_context() -> str:
    service_name = os.getenv('SERVICE_NAME', 'surplus-booking')
    deploy_env = os.getenv('DEPLOY_ENV', 'local_dev')
    # Container hostnames are unique per replica; fall back to PID locally
    instance = os.getenv('HOSTNAME') or socket.gethostname() or str(os.getpid())
    return f'{service_name}@{deploy_env}:{instance[:12]}:{os.getpid()}'
