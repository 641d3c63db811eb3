# orders/urls.py
from django.urls import path
from . import views

app_name = 'orders'

urlpatterns = [
    # Staff
    path('admin/revenue/', views.revenue_summary, name='revenue_summary'),
    path('admin/<str:order_number>/status/', views.update_status, name='update_status'),
    path('admin/<str:order_number>/refund/', views.refund, name='refund'),

    # Customer
    path('<str:order_number>/', views.order_detail, name='order_detail'),
    path('<str:order_number>/cancel/', views.cancel, name='cancel_order'),
    path('api/<str:order_number>/status/', views.get_order_status, name='get_order_status'),
]
