from django.contrib import admin
from django.contrib.auth.admin import UserAdmin
from .models import User

@admin.register(User)
class CustomUserAdmin(UserAdmin):
    list_display = ('username', 'email', 'role', 'first_name', 'last_name', 'is_staff', 'organization_name')
    list_filter = ('role', 'is_staff', 'is_superuser', 'is_active')
    search_fields = ('username', 'email', 'first_name', 'last_name', 'organization_name')
    fieldsets = UserAdmin.fieldsets + (
        ('Event Platform', {'fields': ('role', 'college_name', 'contact_number', 'interests', 'onboarding_complete')}),
        ('Organizer Profile', {'fields': ('organization_name', 'contact_email')}),
    )
    add_fieldsets = UserAdmin.add_fieldsets + (
        ('Event Platform', {'fields': ('role', 'college_name', 'contact_number')}),
    )
