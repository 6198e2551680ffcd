from django.conf import settings


def image_url(filename):
    """이미지 파일명을 공개 URL로 변환"""
    return f"{settings.IMAGE_BASE_URL}{filename}"


def profile_image_url(user):
    """프로필 이미지가 없으면 기본 이미지 사용"""
    return image_url(user.profile_img or settings.DEFAULT_PROFILE_IMG)
