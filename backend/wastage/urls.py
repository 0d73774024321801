from django.urls import path
from .views import (
    wastage_list, wastage_import, wastage_clear,
    discount_list, discount_import, discount_clear,
)

urlpatterns = [
    path('wastage/', wastage_list, name='wastage-list'),
    path('wastage/import/', wastage_import, name='wastage-import'),
    path('wastage/clear/', wastage_clear, name='wastage-clear'),
    path('discounts/', discount_list, name='discount-list'),
    path('discounts/import/', discount_import, name='discount-import'),
    path('discounts/clear/', discount_clear, name='discount-clear'),
]
