from django.contrib import admin
from .models import (
    Event, EventForm, EventFormResponse, Team, TeamMember, EventRegistration
)

@admin.register(Event)
class EventAdmin(admin.ModelAdmin):
    list_display = ('title', 'participation_type', 'capacity', 'participants_count', 'organizer', 'start_time')
    list_filter = ('participation_type', 'start_time')
    search_fields = ('title', 'description', 'organizer__username')
    date_hierarchy = 'start_time'
    # Moved only by the registration service
    readonly_fields = ('participants_count',)

@admin.register(EventForm)
class EventFormAdmin(admin.ModelAdmin):
    list_display = ('event', 'created_by', 'updated_at')
    search_fields = ('event__title',)

@admin.register(EventFormResponse)
class EventFormResponseAdmin(admin.ModelAdmin):
    list_display = ('form', 'user', 'submitted_at')
    search_fields = ('user__username', 'form__event__title')

class TeamMemberInline(admin.TabularInline):
    model = TeamMember
    extra = 0

@admin.register(Team)
class TeamAdmin(admin.ModelAdmin):
    list_display = ('name', 'event', 'code', 'leader', 'created_at')
    search_fields = ('name', 'code', 'event__title', 'leader__username')
    inlines = [TeamMemberInline]

@admin.register(EventRegistration)
class EventRegistrationAdmin(admin.ModelAdmin):
    list_display = ('user', 'event', 'team', 'registered_at')
    list_filter = ('event',)
    search_fields = ('user__username', 'event__title', 'team__name')
