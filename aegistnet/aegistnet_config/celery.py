import os
from celery import Celery

# Set the default Django settings module
os.environ.setdefault('DJANGO_SETTINGS_MODULE', 'aegistnet_config.settings')

app = Celery('aegistnet_config')
app.config_from_object('django.conf:settings', namespace='CELERY')
app.autodiscover_tasks()
