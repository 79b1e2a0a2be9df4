from django.urls import path
from .views import KitchenViewSet

app_name = "kds"

urlpatterns = [
    path("board/", KitchenViewSet.as_view({"get": "board"}), name="board"),
    path("toggle-item/", KitchenViewSet.as_view({"post": "toggle_item"}), name="toggle-item"),
    path("orders/<uuid:order_id>/bump/", KitchenViewSet.as_view({"post": "bump"}), name="bump"),
]
