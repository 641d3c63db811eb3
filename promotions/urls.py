# promotions/urls.py
from django.urls import path
from . import views

app_name = 'promotions'

urlpatterns = [
    path('', views.active_promotions, name='promotions'),
    path('items/<int:item_id>/price/', views.item_price, name='item_price'),
    path('cart/quote/', views.cart_quote, name='cart_quote'),
]
