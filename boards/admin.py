from django.contrib import admin
from .models import Board, Category, Reason

@admin.register(Category)
class CategoryAdmin(admin.ModelAdmin):
    list_display = ('id', 'name', 'path')
    search_fields = ('name', 'path')

@admin.register(Reason)
class ReasonAdmin(admin.ModelAdmin):
    list_display = ('id', 'title', 'reason_type', 'deleted_at')
    list_filter = ('reason_type',)
    search_fields = ('title',)

@admin.register(Board)
class BoardAdmin(admin.ModelAdmin):
    list_display = ('id', 'title', 'writer', 'category', 'created_at', 'deleted_at', 'delete_reason')
    list_filter = ('category', 'created_at')
    search_fields = ('title', 'writer__nick')
    raw_id_fields = ('writer', 'category', 'delete_reason')
