"""
Service context extraction for distributed logging.

Identifies the emitting process so interleaved logs from several hold
workers can be told apart.
"""

import os
from functools import lru_cache


@lru_cache(maxsize=1)
def get_service_context() -> str:
    service_name = os.getenv('SERVICE_NAME', 'reservation-hold')
    deploy_env = os.getenv('DEPLOY_ENV', 'local_dev')

    # Edge/container runtimes expose an instance id; fall back to the PID locally
    instance_id = os.getenv('INSTANCE_ID', '')[:8] or str(os.getpid())

    return f'{service_name}@{deploy_env}:{instance_id}'
