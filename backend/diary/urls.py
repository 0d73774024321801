from django.urls import path
from .views import diary_list_create, diary_detail

urlpatterns = [
    path('shop-diary/', diary_list_create, name='diary-list-create'),
    path('shop-diary/<int:pk>/', diary_detail, name='diary-detail'),
]
