from django.db import models
from django.conf import settings


class Category(models.Model):
    name = models.CharField(max_length=50)
    path = models.CharField(max_length=50, unique=True, help_text='URL 경로 (예: free)')

    class Meta:
        db_table = 'category'
        verbose_name = '게시판 카테고리'
        verbose_name_plural = '게시판 카테고리 목록'

    def __str__(self):
        return self.name


class ReasonQuerySet(models.QuerySet):
    def alive(self):
        return self.filter(deleted_at__isnull=True)

    def of_type(self, reason_type):
        return self.filter(reason_type=reason_type)


class Reason(models.Model):
    """신고/삭제 사유. reason_type 으로 사용처를 구분한다."""

    class ReasonType(models.TextChoices):
        CMT_REPORT = 'CMT_REPORT', '댓글 신고'
        CMT_DELETE = 'CMT_DELETE', '댓글 삭제'
        BOARD_REPORT = 'BOARD_REPORT', '게시글 신고'
        BOARD_DELETE = 'BOARD_DELETE', '게시글 삭제'

    title = models.CharField(max_length=100)
    reason_type = models.CharField(max_length=20, choices=ReasonType.choices)
    created_at = models.DateTimeField(auto_now_add=True)
    deleted_at = models.DateTimeField(null=True, blank=True)

    objects = ReasonQuerySet.as_manager()

    class Meta:
        db_table = 'reason'
        verbose_name = '사유'
        verbose_name_plural = '사유 목록'

    def __str__(self):
        return f'[{self.get_reason_type_display()}] {self.title}'


class BoardQuerySet(models.QuerySet):
    def alive(self):
        return self.filter(deleted_at__isnull=True, delete_reason__isnull=True)


class Board(models.Model):
    title = models.CharField(max_length=200)
    category = models.ForeignKey(Category, on_delete=models.CASCADE, related_name='boards')
    writer = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='boards'
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)
    deleted_at = models.DateTimeField(null=True, blank=True)
    delete_reason = models.ForeignKey(
        Reason,
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name='deleted_boards',
        verbose_name='삭제 사유'
    )

    objects = BoardQuerySet.as_manager()

    class Meta:
        db_table = 'board'
        verbose_name = '게시글'
        verbose_name_plural = '게시글 목록'

    def __str__(self):
        return self.title
