import logging

import bleach
from django.db import IntegrityError, transaction
from django.utils import timezone

from board_backend.assets import image_url
from boards.models import Board, Reason
from users.models import User
from . import formatter
from .models import Comment, CommentLike, CommentReport

logger = logging.getLogger(__name__)


def sanitize_content(value):
    """HTML 태그를 모두 제거한 본문."""
    if not value:
        return ''
    return bleach.clean(value, tags=[], strip=True).strip()


def _owned_alive_comment(user_id, cmt_id):
    return Comment.objects.alive().filter(writer_id=user_id, id=cmt_id).first()


def delete_cmt(user_id, cmt_id):
    """작성자 본인의 댓글 삭제. 본문에 삭제 표시를 붙이고 deleted_at 을 기록한다."""
    if not user_id or not cmt_id:
        return False

    target = _owned_alive_comment(user_id, cmt_id)
    if target is None:
        logger.debug(f"댓글 삭제 거부 - user={user_id}, cmt={cmt_id}")
        return False

    content = formatter.remake(target.content, marker=formatter.DELETED_MARKER)
    if content is None:
        logger.warning(f"댓글 본문 형식 오류로 삭제 실패 - cmt={cmt_id}")
        return False

    with transaction.atomic():
        target.content = content
        target.deleted_at = timezone.now()
        target.save(update_fields=['content', 'deleted_at', 'updated_at'])

    logger.info(f"댓글 삭제 - user={user_id}, cmt={cmt_id}")
    return True


def add_cmt(user_id, content, board_id=None, reply_id=None, img=None):
    """댓글/답글 작성.

    reply_id 가 살아있는 댓글을 가리키면 답글로 달리고 게시글은 부모 댓글의 것을
    따른다. 그렇지 않으면 board_id 의 게시글에 달린다. 대상이 없거나 본문과 이미지가
    모두 비어 있으면 None.
    """
    board = Board.objects.alive().filter(id=board_id).first() if board_id else None
    parent = Comment.objects.alive().filter(id=reply_id).first() if reply_id else None
    if board is None and parent is None:
        logger.debug(f"댓글 작성 거부 (대상 없음) - board={board_id}, reply={reply_id}")
        return None

    content = sanitize_content(content)
    if not content and not img:
        return None

    if not User.objects.alive().filter(id=user_id).exists():
        return None

    packed = formatter.make(content, '', image_url(img)) if img else formatter.make(content)
    if parent is not None:
        cmt = Comment.objects.create(
            board_id=parent.board_id,
            writer_id=user_id,
            content=packed,
            reply=parent,
        )
    else:
        cmt = Comment.objects.create(
            board=board,
            writer_id=user_id,
            content=packed,
        )

    logger.info(f"댓글 작성 - user={user_id}, cmt={cmt.id}, board={cmt.board_id}, reply={cmt.reply_id}")
    return cmt


def update_cmt(user_id, cmt_id, is_delete_img=False, content=None, re_img=None):
    """댓글 수정. 수정 표시를 붙이고, 새 이미지가 없으면 기존 이미지를 유지한다.

    is_delete_img 이면 이미지를 버리고 본문만 남긴다.
    """
    content = sanitize_content(content) if content is not None else None
    if not content and not re_img:
        return False

    target = _owned_alive_comment(user_id, cmt_id)
    if target is None:
        return False
    if formatter.parse(target.content) is None:
        logger.warning(f"댓글 본문 형식 오류로 수정 실패 - cmt={cmt_id}")
        return False

    if re_img:
        result = formatter.remake(
            target.content, formatter.EDITED_MARKER, content or '', image_url(re_img)
        )
    elif is_delete_img:
        result = formatter.make(content or '', formatter.EDITED_MARKER)
    else:
        result = formatter.remake(target.content, formatter.EDITED_MARKER, content)

    if result is None:
        return False

    target.content = result
    target.save(update_fields=['content', 'updated_at'])
    logger.info(f"댓글 수정 - user={user_id}, cmt={cmt_id}")
    return True


def like_cmt(user_id, cmt_id, is_dislike=False):
    """좋아요/싫어요 토글. 두 값은 서로 독립적이다."""
    if not user_id or not cmt_id:
        return False
    if not Comment.objects.alive().filter(id=cmt_id).exists():
        return False
    if not User.objects.alive().filter(id=user_id).exists():
        return False

    like, _ = CommentLike.objects.get_or_create(
        user_id=user_id,
        comment_id=cmt_id,
        deleted_at=None,
        defaults={'is_like': False, 'is_dislike': False},
    )
    if is_dislike:
        like.is_dislike = not like.is_dislike
        like.save(update_fields=['is_dislike'])
    else:
        like.is_like = not like.is_like
        like.save(update_fields=['is_like'])
    return True


def report_cmt(user_id, cmt_id, reason_id):
    """댓글 신고. 같은 사용자가 같은 댓글을 이미 신고했다면 False."""
    if not user_id or not cmt_id or not reason_id:
        return False
    if not Comment.objects.alive().filter(id=cmt_id).exists():
        return False
    if not User.objects.alive().filter(id=user_id).exists():
        return False
    if not Reason.objects.alive().of_type(Reason.ReasonType.CMT_REPORT).filter(id=reason_id).exists():
        return False
    if CommentReport.objects.filter(reporter_id=user_id, comment_id=cmt_id, deleted_at__isnull=True).exists():
        return False

    try:
        with transaction.atomic():
            CommentReport.objects.create(reporter_id=user_id, comment_id=cmt_id, reason_id=reason_id)
    except IntegrityError:
        logger.warning(f"중복 신고 - user={user_id}, cmt={cmt_id}")
        return False

    logger.info(f"댓글 신고 - user={user_id}, cmt={cmt_id}, reason={reason_id}")
    return True


def moderate_cmt(cmt_id, reason_id):
    """관리자 삭제. 댓글 삭제 사유(CMT_DELETE)를 기록한다."""
    reason = Reason.objects.alive().of_type(Reason.ReasonType.CMT_DELETE).filter(id=reason_id).first()
    if reason is None:
        return False
    updated = Comment.objects.alive().filter(id=cmt_id).update(delete_reason=reason, updated_at=timezone.now())
    if updated:
        logger.info(f"댓글 관리자 삭제 - cmt={cmt_id}, reason={reason_id}")
    return bool(updated)


def restore_cmt(cmt_id):
    """관리자 삭제 취소. 작성자가 직접 삭제한 댓글은 되살리지 않는다."""
    updated = Comment.objects.filter(
        id=cmt_id,
        delete_reason__isnull=False,
        deleted_at__isnull=True,
    ).update(delete_reason=None, updated_at=timezone.now())
    if updated:
        logger.info(f"댓글 관리자 삭제 취소 - cmt={cmt_id}")
    return bool(updated)
