from django.contrib import admin
from .models import Event, Team, TeamMember, Registration


@admin.register(Event)
class EventAdmin(admin.ModelAdmin):
    list_display = ('name', 'status', 'event_type', 'organizer', 'start_time', 'current_registrations', 'registration_limit')
    list_filter = ('status', 'event_type', 'team_based', 'eligibility', 'start_time')
    search_fields = ('name', 'description', 'organizer__username')
    date_hierarchy = 'start_time'
    # Counters belong to the capacity ledger
    readonly_fields = ('current_registrations', 'form_locked', 'published_at', 'created_at')


class TeamMemberInline(admin.TabularInline):
    model = TeamMember
    extra = 0
    fields = ('user', 'role', 'status', 'joined_at', 'left_at')
    readonly_fields = fields
    can_delete = False


@admin.register(Team)
class TeamAdmin(admin.ModelAdmin):
    list_display = ('team_name', 'event', 'leader', 'status', 'max_size', 'invite_code', 'created_at')
    list_filter = ('status', 'event')
    search_fields = ('team_name', 'invite_code', 'leader__username', 'event__name')
    readonly_fields = ('invite_code', 'status', 'created_at', 'completed_at', 'cancelled_at')
    inlines = [TeamMemberInline]


@admin.register(TeamMember)
class TeamMemberAdmin(admin.ModelAdmin):
    list_display = ('user', 'team', 'event', 'role', 'status', 'joined_at')
    list_filter = ('role', 'status')
    search_fields = ('user__username', 'team__team_name')


@admin.register(Registration)
class RegistrationAdmin(admin.ModelAdmin):
    list_display = ('ticket_id', 'user', 'event', 'status', 'team_name', 'quantity', 'attendance', 'registered_at')
    list_filter = ('status', 'event_type', 'attendance', 'event')
    search_fields = ('ticket_id', 'user__username', 'event__name', 'team_name')
    readonly_fields = ('ticket_id', 'registered_at', 'cancelled_at', 'attendance_marked_at')
