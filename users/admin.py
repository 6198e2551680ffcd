from django.contrib import admin
from django.contrib.auth.admin import UserAdmin as BaseUserAdmin
from .models import User

@admin.register(User)
class UserAdmin(BaseUserAdmin):
    list_display = ('username', 'nick', 'email', 'is_active', 'is_staff', 'deleted_at', 'date_joined')
    list_filter = ('is_active', 'is_staff', 'is_superuser')
    search_fields = ('username', 'nick', 'email')

    # first_name, last_name 제거된 fieldsets
    fieldsets = (
        (None, {'fields': ('email', 'password')}),
        ('개인정보', {'fields': ('username', 'nick', 'profile_img')}),
        ('권한', {'fields': ('is_active', 'is_staff', 'is_superuser', 'groups', 'user_permissions')}),
        ('날짜', {'fields': ('last_login', 'date_joined', 'deleted_at')}),
    )

    add_fieldsets = (
        (None, {'classes': ('wide',), 'fields': ('email', 'username', 'nick', 'password1', 'password2')}),
    )

    ordering = ('-date_joined',)
