from django.urls import path
from . import views

urlpatterns = [
    path('reports/wastage-discounts/', views.wastage_discount_report, name='wastage-discount-report'),
    path('reports/margins/', views.margin_report, name='margin-report'),
    path('reports/markup-checker/', views.markup_checker, name='markup-checker'),
    path('reports/low-stock/', views.low_stock_report, name='low-stock-report'),
    path('reports/shelf-price-checker/', views.shelf_price_checker, name='shelf-price-checker'),
    path('dashboard/', views.dashboard, name='dashboard'),
]
