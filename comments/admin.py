from django import forms
from django.contrib import admin, messages
from django.contrib.admin.helpers import ACTION_CHECKBOX_NAME
from django.shortcuts import render

from boards.models import Reason
from . import services
from .models import Comment, CommentLike, CommentReport


class ModerateForm(forms.Form):
    _selected_action = forms.CharField(widget=forms.MultipleHiddenInput)
    reason = forms.ModelChoiceField(
        queryset=Reason.objects.alive().of_type(Reason.ReasonType.CMT_DELETE),
        label='삭제 사유',
    )


@admin.register(Comment)
class CommentAdmin(admin.ModelAdmin):
    list_display = ('id', 'writer', 'board', 'reply', 'created_at', 'deleted_at', 'delete_reason')
    search_fields = ('content', 'writer__nick', 'board__title')
    list_filter = ('created_at', 'delete_reason')
    raw_id_fields = ('board', 'writer', 'reply', 'delete_reason')
    actions = ['moderate_selected', 'restore_selected']

    def has_delete_permission(self, request, obj=None):
        # 댓글은 deleted_at / delete_reason 으로만 지운다
        return False

    @admin.action(description='선택한 댓글을 사유와 함께 삭제')
    def moderate_selected(self, request, queryset):
        if 'apply' in request.POST:
            form = ModerateForm(request.POST)
            if form.is_valid():
                reason = form.cleaned_data['reason']
                count = sum(services.moderate_cmt(cmt.id, reason.id) for cmt in queryset)
                self.message_user(request, f'{count}개의 댓글을 삭제했습니다.', messages.SUCCESS)
                return None
        else:
            form = ModerateForm(initial={'_selected_action': request.POST.getlist(ACTION_CHECKBOX_NAME)})
        return render(request, 'admin/comments/moderate.html', {
            'title': '댓글 삭제 사유 선택',
            'comments': queryset,
            'form': form,
            'opts': self.model._meta,
        })

    @admin.action(description='관리자 삭제 취소')
    def restore_selected(self, request, queryset):
        count = sum(services.restore_cmt(cmt.id) for cmt in queryset)
        self.message_user(request, f'{count}개의 댓글을 복구했습니다.', messages.SUCCESS)


@admin.register(CommentLike)
class CommentLikeAdmin(admin.ModelAdmin):
    list_display = ('id', 'user', 'comment', 'is_like', 'is_dislike', 'created_at')
    search_fields = ('user__nick',)
    list_filter = ('is_like', 'is_dislike', 'created_at')
    raw_id_fields = ('user', 'comment')


@admin.register(CommentReport)
class CommentReportAdmin(admin.ModelAdmin):
    list_display = ('id', 'reporter', 'comment', 'reason', 'created_at', 'deleted_at')
    search_fields = ('reporter__nick', 'comment__content')
    list_filter = ('reason', 'created_at')
    raw_id_fields = ('reporter', 'comment', 'reason')
