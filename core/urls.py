from django.urls import path
from .views import EventActivityView


urlpatterns = [
    path("events/<int:event_id>/activity/", EventActivityView.as_view(), name="event-activity"),
]
