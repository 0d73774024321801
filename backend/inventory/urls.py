from django.urls import path
from .views import (
    inventory_list_create, inventory_detail, inventory_adjust_stock, inventory_movements,
)

urlpatterns = [
    path('inventory/', inventory_list_create, name='inventory-list-create'),
    path('inventory/<int:pk>/', inventory_detail, name='inventory-detail'),
    path('inventory/<int:pk>/adjust-stock/', inventory_adjust_stock, name='inventory-adjust-stock'),
    path('inventory/<int:pk>/movements/', inventory_movements, name='inventory-movements'),
]
