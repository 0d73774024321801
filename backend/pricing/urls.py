from django.urls import path
from .views import price_calculate, pack_size_detect, category_markups

urlpatterns = [
    path('pricing/calculate/', price_calculate, name='pricing-calculate'),
    path('pricing/pack-size/', pack_size_detect, name='pricing-pack-size'),
    path('pricing/markups/', category_markups, name='pricing-markups'),
]
