import os
from django.core.asgi import get_asgi_application
from channels.routing import ProtocolTypeRouter, URLRouter

# Set default settings module
os.environ.setdefault('DJANGO_SETTINGS_MODULE', 'aegistnet_config.settings')

# Initialize Django application
django_application = get_asgi_application()

# Import routing AFTER Django is set up
from apps.dashboard_app import routing  # noqa: E402
from apps.dashboard_app.middleware import FirebaseTokenAuthMiddleware  # noqa: E402

application = ProtocolTypeRouter({
    "http": django_application,
    "websocket": FirebaseTokenAuthMiddleware(
        URLRouter(
            routing.websocket_urlpatterns
        )
    ),
})
