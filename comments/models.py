from django.db import models
from django.conf import settings
from django.db.models import Q

from boards.models import Board, Reason


class CommentQuerySet(models.QuerySet):
    def alive(self):
        return self.filter(deleted_at__isnull=True, delete_reason__isnull=True)

    def deleted(self):
        return self.filter(Q(deleted_at__isnull=False) | Q(delete_reason__isnull=False))

    def top_level(self):
        return self.filter(reply__isnull=True)


class Comment(models.Model):
    board = models.ForeignKey(Board, on_delete=models.CASCADE, related_name='comments')
    writer = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name='comments')
    # formatter.make() 로 묶인 본문/표시/이미지
    content = models.TextField()
    reply = models.ForeignKey(
        'self', null=True, blank=True, related_name='replies', on_delete=models.CASCADE
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)
    deleted_at = models.DateTimeField(null=True, blank=True)
    delete_reason = models.ForeignKey(
        Reason,
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name='deleted_comments',
        verbose_name='삭제 사유'
    )

    objects = CommentQuerySet.as_manager()

    class Meta:
        db_table = 'comment'
        verbose_name = '댓글'
        verbose_name_plural = '댓글 목록'

    def __str__(self):
        return f'Comment by {self.writer} on {self.board}'

    @property
    def is_deleted(self):
        return self.deleted_at is not None or self.delete_reason_id is not None


class CommentLike(models.Model):
    user = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name='comment_likes')
    comment = models.ForeignKey(Comment, on_delete=models.CASCADE, related_name='likes')
    is_like = models.BooleanField(default=False)
    is_dislike = models.BooleanField(default=False)
    created_at = models.DateTimeField(auto_now_add=True)
    deleted_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        db_table = 'comment_like'
        verbose_name = '댓글 좋아요'
        verbose_name_plural = '댓글 좋아요 목록'
        constraints = [
            models.UniqueConstraint(
                fields=['user', 'comment'],
                condition=Q(deleted_at__isnull=True),
                name='unique_active_comment_like',
            ),
        ]


class CommentReport(models.Model):
    reporter = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name='comment_reports')
    comment = models.ForeignKey(Comment, on_delete=models.CASCADE, related_name='reports')
    reason = models.ForeignKey(Reason, on_delete=models.PROTECT, related_name='comment_reports')
    created_at = models.DateTimeField(auto_now_add=True)
    deleted_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        db_table = 'comment_report'
        verbose_name = '댓글 신고'
        verbose_name_plural = '댓글 신고 목록'
        constraints = [
            models.UniqueConstraint(
                fields=['reporter', 'comment'],
                condition=Q(deleted_at__isnull=True),
                name='unique_active_comment_report',
            ),
        ]

    def __str__(self):
        return f'{self.reporter} reported comment {self.comment_id}'
