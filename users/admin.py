from django.contrib import admin
from django.contrib.auth.admin import UserAdmin as BaseUserAdmin
from django.contrib.auth.models import User

from .models import Profile


class ProfileInline(admin.StackedInline):
    model = Profile
    can_delete = False
    fields = ['full_name', 'role']


class UserAdmin(BaseUserAdmin):
    inlines = [ProfileInline]
    list_display = ['username', 'email', 'profile_name', 'profile_role', 'is_staff', 'is_active']

    def profile_name(self, obj):
        return obj.profile.display_name if hasattr(obj, 'profile') else '-'
    profile_name.short_description = 'Full name'

    def profile_role(self, obj):
        return obj.profile.get_role_display() if hasattr(obj, 'profile') else '-'
    profile_role.short_description = 'Role'


admin.site.unregister(User)
admin.site.register(User, UserAdmin)
