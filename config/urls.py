from django.contrib import admin
from django.urls import path, include


urlpatterns = [
    # Admin site
    path('admin/', admin.site.urls),

    # Classes and rosters
    path('academics/', include('apps.academics.urls', namespace='academics')),

    # Working days, presence submission and imports
    path('attendance/', include('apps.attendance.urls', namespace='attendance')),

    # Teacher/parent chat
    path('communication/', include('apps.communication.urls', namespace='communication')),
]

# Admin site customization
admin.site.site_header = 'School Core Administration'
admin.site.site_title = 'School Core Admin'
admin.site.index_title = 'Attendance and messaging'
