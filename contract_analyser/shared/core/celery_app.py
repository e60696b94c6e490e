import logging
import os

from celery import Celery

from contract_analyser.shared.core.config import config

logging.basicConfig(level=getattr(logging, config.LOG_LEVEL, logging.INFO))

# Decide which agents this worker loads
worker_type = os.getenv('WORKER_TYPE', 'all')

include_modules = []
if worker_type == 'analysis':
    include_modules = ['contract_analyser.analysis_agent.agent']
elif worker_type == 'report':
    include_modules = ['contract_analyser.report_agent.agent']
elif worker_type == 'delivery':
    include_modules = ['contract_analyser.delivery_agent.agent']
elif worker_type == 'cleanup':
    include_modules = ['contract_analyser.cleanup_agent.agent']
else:
    # Default: every agent (FastAPI and single-worker deployments)
    include_modules = [
        'contract_analyser.analysis_agent.agent',
        'contract_analyser.report_agent.agent',
        'contract_analyser.delivery_agent.agent',
        'contract_analyser.cleanup_agent.agent'
    ]

celery_app = Celery(
    'contract_analyser',
    broker=config.REDIS_URL,
    backend=config.REDIS_URL,
    include=include_modules
)

celery_app.conf.update(
    task_serializer='json',
    accept_content=['json'],
    result_serializer='json',
    timezone='UTC',
    enable_utc=True,
    task_track_started=True,
    task_time_limit=int(config.PIPELINE_TIMEOUT_SECONDS) + 60,
    task_soft_time_limit=int(config.PIPELINE_TIMEOUT_SECONDS) + 30,
    beat_schedule={
        'delete-old-files-daily': {
            'task': 'cleanup.delete_old_files',
            'schedule': 24 * 60 * 60,
        },
    },
)
