from django.urls import path
from .views import medicine_list_create, medicine_detail, medicine_categories

urlpatterns = [
    path('medicines/', medicine_list_create, name='medicine-list-create'),
    path('medicines/categories/', medicine_categories, name='medicine-categories'),
    path('medicines/<int:pk>/', medicine_detail, name='medicine-detail'),
]
