from django.contrib import admin
from django.urls import path, include
from django.conf import settings
from django.conf.urls.static import static

# Main URL configuration
urlpatterns = [
    path('admin/', admin.site.urls),
]

# JSON API and health check
urlpatterns += [
    path('', include('store.urls')),
]

# Admin static files during debug
if settings.DEBUG:
    urlpatterns += static(settings.STATIC_URL, document_root=settings.STATIC_ROOT)
