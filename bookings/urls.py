# bookings/urls.py
from django.urls import path
from . import views

app_name = 'bookings'

urlpatterns = [
    path('<str:booking_number>/', views.booking_detail, name='booking_detail'),
    path('<str:booking_number>/cancel/', views.cancel, name='cancel_booking'),
    path('admin/<str:booking_number>/status/', views.update_status, name='update_status'),
    path('admin/<str:booking_number>/no-show/', views.no_show, name='no_show'),
]
