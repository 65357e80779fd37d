import os

from celery import Celery

os.environ.setdefault('DJANGO_SETTINGS_MODULE', 'docseal.settings')

app = Celery('docseal')
app.config_from_object('django.conf:settings', namespace='CELERY')
app.conf.update(
    task_track_started=True,
    timezone='UTC',
    enable_utc=True,
)
app.conf.broker_connection_retry_on_startup = True
app.autodiscover_tasks()
