from django.contrib import admin
from django.urls import path, include
from django.conf import settings
from django.conf.urls.static import static

from clm import views as clm_views

urlpatterns = [
    path('admin/', admin.site.urls),
    path('', include('clm.urls')),
]

if settings.DEBUG:
    urlpatterns += static(settings.STATIC_URL, document_root=settings.STATIC_ROOT)

# Custom error handlers
handler404 = clm_views.custom_404
handler500 = clm_views.custom_500
