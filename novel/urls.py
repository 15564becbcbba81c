from django.urls import path

from . import views

urlpatterns = [
    path("chapters/", views.chapter_list, name="chapter_list"),
    path("chapters/<int:chapter_id>/", views.chapter_detail, name="chapter_detail"),
    path("outlines/", views.outline_list, name="outline_list"),
    path("outlines/<int:outline_id>/", views.outline_detail, name="outline_detail"),
    path("ai/chat/", views.ai_chat, name="ai_chat"),
    path("ai/generate-chapters/", views.generate_chapters, name="generate_chapters"),
    path(
        "ai/generate-outline-content/",
        views.generate_outline_content,
        name="generate_outline_content",
    ),
]
