from django.urls import path
from .views import (
    vendor_list_create, vendor_detail, vendor_order_settings,
    item_list_create, item_detail, item_price_history, item_print_sheet,
    item_bulk_update_positions, item_bulk_categorize,
    item_label, dymo_label_preview, dymo_print,
    shelf_checker_state,
)

urlpatterns = [
    # Vendor endpoints
    path('vendors/', vendor_list_create, name='vendor-list-create'),
    path('vendors/<int:pk>/', vendor_detail, name='vendor-detail'),
    path('vendors/<int:pk>/order-settings/', vendor_order_settings, name='vendor-order-settings'),

    # Item endpoints
    path('items/', item_list_create, name='item-list-create'),
    path('items/print-sheet/', item_print_sheet, name='item-print-sheet'),
    path('items/bulk-update-positions/', item_bulk_update_positions, name='item-bulk-update-positions'),
    path('items/bulk-categorize/', item_bulk_categorize, name='item-bulk-categorize'),
    path('items/<int:pk>/', item_detail, name='item-detail'),
    path('items/<int:pk>/price-history/', item_price_history, name='item-price-history'),
    path('items/<int:pk>/label/', item_label, name='item-label'),

    # Label printing
    path('labels/dymo/preview/', dymo_label_preview, name='dymo-label-preview'),
    path('labels/dymo/print/', dymo_print, name='dymo-print'),

    # Shelf checker
    path('shelf-checker-state/', shelf_checker_state, name='shelf-checker-state'),
]
