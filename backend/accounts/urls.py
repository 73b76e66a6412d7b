from django.urls import path
from rest_framework.routers import SimpleRouter

from . import views

router = SimpleRouter()
router.register('', views.UserViewSet, basename='user')

auth_urlpatterns = [
    path('login/', views.login, name='login'),
    path('register/', views.register, name='register'),
    path('refresh/', views.refresh, name='token-refresh'),
    path('me/', views.me, name='me'),
    path('menu/', views.menu, name='menu'),
]

urlpatterns = router.urls
