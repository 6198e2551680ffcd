from django.contrib.auth.models import AbstractUser, BaseUserManager
from django.db import models


class UserQuerySet(models.QuerySet):
    def alive(self):
        return self.filter(deleted_at__isnull=True)


class UserManager(BaseUserManager.from_queryset(UserQuerySet)):
    def create_user(self, email, username, nick=None, password=None, **extra_fields):
        if not email:
            raise ValueError('The Email field must be set')
        email = self.normalize_email(email)

        extra_fields.setdefault('is_staff', False)
        extra_fields.setdefault('is_superuser', False)
        extra_fields.setdefault('is_active', True)

        user = self.model(email=email, username=username, nick=nick or username, **extra_fields)
        user.set_password(password)
        user.save(using=self._db)
        return user

    def create_superuser(self, email, username, nick=None, password=None, **extra_fields):
        extra_fields.setdefault('is_staff', True)
        extra_fields.setdefault('is_superuser', True)
        extra_fields.setdefault('is_active', True)

        if extra_fields.get('is_staff') is not True:
            raise ValueError('Superuser must have is_staff=True.')
        if extra_fields.get('is_superuser') is not True:
            raise ValueError('Superuser must have is_superuser=True.')

        return self.create_user(email, username, nick, password, **extra_fields)


class User(AbstractUser):
    # AbstractUser의 first_name, last_name 필드 제거
    first_name = None
    last_name = None

    email = models.EmailField(unique=True)
    username = models.CharField(max_length=150, unique=True)
    nick = models.CharField(max_length=30, verbose_name='닉네임')
    profile_img = models.CharField(
        max_length=255,
        null=True,
        blank=True,
        verbose_name='프로필 이미지',
        help_text='이미지 파일명 (비어 있으면 기본 이미지)'
    )
    deleted_at = models.DateTimeField(null=True, blank=True, verbose_name='탈퇴 일시')

    objects = UserManager()

    USERNAME_FIELD = 'email'
    REQUIRED_FIELDS = ['username']

    class Meta:
        db_table = 'user_info'
        verbose_name = '사용자'
        verbose_name_plural = '사용자 목록'

    def __str__(self):
        return self.nick or self.email
