"""
URL configuration for the shop operations backend.

All JSON endpoints live under /api/, one include per app.
"""
from django.contrib import admin
from django.urls import path, include, re_path
from django.conf import settings
from django.views.static import serve

admin.site.site_header = "Shop Operations Admin"
admin.site.site_title = "Shop Operations Admin Portal"
admin.site.index_title = "Shop operations"

urlpatterns = [
    path('admin/', admin.site.urls),
    path('api/', include('backend.core.urls')),
    path('api/', include('backend.catalog.urls')),
    path('api/', include('backend.pricing.urls')),
    path('api/', include('backend.inventory.urls')),
    path('api/', include('backend.purchasing.urls')),
    path('api/', include('backend.sales.urls')),
    path('api/', include('backend.roster.urls')),
    path('api/', include('backend.wastage.urls')),
    path('api/', include('backend.diary.urls')),
    path('api/', include('backend.reports.urls')),
    re_path(r'^media/(?P<path>.*)$', serve, {'document_root': settings.MEDIA_ROOT}),
    re_path(r'^static/(?P<path>.*)$', serve, {'document_root': settings.STATIC_ROOT}),
]
