from django.urls import include, path

from . import views

auth_patterns = [
    path('register', views.register, name='register'),
    path('login', views.login, name='login'),
    path('refresh-token', views.refresh_token, name='refresh_token'),
    path('me', views.me, name='me'),
]

address_patterns = [
    path('', views.addresses, name='addresses'),
    path('default', views.default_address, name='default_address'),
    path('<uuid:address_id>', views.address_detail, name='address_detail'),
]

cart_patterns = [
    path('', views.cart_view, name='cart'),
    path('add', views.cart_add, name='cart_add'),
    path('reduce', views.cart_reduce, name='cart_reduce'),
    path('remove/<uuid:product_id>', views.cart_remove, name='cart_remove'),
    path('clear', views.cart_clear, name='cart_clear'),
]

wishlist_patterns = [
    path('', views.wishlist_view, name='wishlist'),
    path('add', views.wishlist_add, name='wishlist_add'),
    path('remove/<uuid:product_id>', views.wishlist_remove, name='wishlist_remove'),
    path('clear', views.wishlist_clear, name='wishlist_clear'),
]

category_patterns = [
    path('', views.categories, name='categories'),
    path('<int:category_id>', views.category_detail, name='category_detail'),
]

product_patterns = [
    path('', views.products, name='products'),
    path('mine', views.my_products, name='my_products'),
    path('<uuid:product_id>', views.product_detail, name='product_detail'),
    path('<uuid:product_id>/images', views.product_images, name='product_images'),
]

review_patterns = [
    path('', views.reviews, name='reviews'),
    path('product/<uuid:product_id>', views.product_reviews, name='product_reviews'),
    path('product/<uuid:product_id>/user', views.user_review, name='user_review'),
]

order_patterns = [
    path('', views.orders, name='orders'),
    path('place', views.place_order, name='place_order'),
    path('buy-now', views.buy_now, name='buy_now'),
    path('cancel/<uuid:order_id>', views.cancel_order, name='cancel_order'),
    path('<uuid:order_id>', views.order_detail, name='order_detail'),
]

payment_patterns = [
    path('', views.payments, name='payments'),
    path('create-payment-intent', views.create_payment_intent, name='create_payment_intent'),
    path('order/<uuid:order_id>', views.order_payments, name='order_payments'),
]

urlpatterns = [
    path('', views.health, name='health'),
    path('api/auth/', include(auth_patterns)),
    path('api/address/', include(address_patterns)),
    path('api/cart/', include(cart_patterns)),
    path('api/wishlist/', include(wishlist_patterns)),
    path('api/categories/', include(category_patterns)),
    path('api/products/', include(product_patterns)),
    path('api/search/', views.search, name='search'),
    path('api/review/', include(review_patterns)),
    path('api/order/', include(order_patterns)),
    path('api/payment/', include(payment_patterns)),
]
