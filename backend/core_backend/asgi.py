import os

os.environ.setdefault("DJANGO_SETTINGS_MODULE", "core_backend.settings")

from django.core.asgi import get_asgi_application

# Initialize Django ASGI application early to ensure AppRegistry is populated
# before importing code that may import ORM models.
django_asgi_app = get_asgi_application()

from channels.routing import ProtocolTypeRouter, URLRouter
from core_backend.jwt_websocket_middleware import JWTAuthMiddlewareStack
import kds.routing

application = ProtocolTypeRouter(
    {
        "http": django_asgi_app,
        "websocket": JWTAuthMiddlewareStack(URLRouter(kds.routing.websocket_urlpatterns)),
    }
)
