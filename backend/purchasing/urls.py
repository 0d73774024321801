from django.urls import path
from .views import (
    purchase_order_list_create, purchase_order_detail, purchase_order_approve,
    purchase_order_receive, analyze_sales_view, ai_order_suggestions, smart_alerts_view, sales_trends_view,
)

urlpatterns = [
    path('purchase-orders/', purchase_order_list_create, name='purchase-order-list-create'),
    path('purchase-orders/<int:pk>/', purchase_order_detail, name='purchase-order-detail'),
    path('purchase-orders/<int:pk>/approve/', purchase_order_approve, name='purchase-order-approve'),
    path('purchase-orders/<int:pk>/receive/', purchase_order_receive, name='purchase-order-receive'),

    # Order suggestions
    path('orders/analyze-sales/', analyze_sales_view, name='orders-analyze-sales'),
    path('ai/order-suggestions/', ai_order_suggestions, name='ai-order-suggestions'),
    path('ai/smart-alerts/', smart_alerts_view, name='ai-smart-alerts'),
    path('ai/sales-trends/', sales_trends_view, name='ai-sales-trends'),
]
