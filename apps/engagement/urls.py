from django.urls import path

from .views import FavoriteListView, FavoriteStatusView, RecordViewView, ToggleFavoriteView, ViewedProductListView

urlpatterns = [
    path("favorites/", FavoriteListView.as_view(), name="favorites"),
    path("favorites/toggle/", ToggleFavoriteView.as_view(), name="favorites-toggle"),
    path("favorites/<uuid:product_id>/", FavoriteStatusView.as_view(), name="favorites-status"),
    path("viewed/", ViewedProductListView.as_view(), name="viewed-products"),
    path("viewed/record/", RecordViewView.as_view(), name="viewed-record"),
]
