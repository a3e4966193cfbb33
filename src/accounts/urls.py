"""URL configuration for accounts app."""

from django.urls import path

from . import views

app_name = "accounts"

urlpatterns = [
    path("login/", views.login_view, name="login"),
    path("logout/", views.logout_view, name="logout"),
    path("session/", views.session_view, name="session"),
    path("profile/", views.profile_view, name="profile"),
    path(
        "password/change/",
        views.password_change_view,
        name="password_change",
    ),
    path("users/", views.user_list_view, name="user_list"),
]
