from django.urls import path
from . import views

app_name = 'reputation'

urlpatterns = [
    # GET    /api/reputation/me/          - Current user's reputation
    path('me/', views.my_reputation, name='me'),
]
