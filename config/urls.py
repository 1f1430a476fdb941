"""
URL configuration for Taskboard.
"""
from django.urls import path
from ninja import NinjaAPI

from apps.core.errors import register_exception_handlers
from apps.core.views import health

api = NinjaAPI(
    title="Taskboard API",
    version="1.0.0",
    description="Multi-user task tracking API",
    docs_url="/docs",
)
register_exception_handlers(api)

from apps.identity.api import router as auth_router, users_router
from apps.todos.api import router as todos_router

api.add_router("/auth", auth_router)
api.add_router("/users", users_router)
api.add_router("/todos", todos_router)

urlpatterns = [
    path('api/', api.urls),
    path('health', health, name='health'),
]
