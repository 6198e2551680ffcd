import logging
from collections import defaultdict

from django.conf import settings
from django.db.models import Count, Q

from board_backend.assets import profile_image_url
from . import formatter
from .models import Comment, CommentLike, CommentReport

logger = logging.getLogger(__name__)

SEARCH_CONTENT = 'content'
SEARCH_WRITER = 'writer'
SEARCH_CONTENT_WRITER = 'contentWriter'
SEARCH_TYPES = (SEARCH_CONTENT, SEARCH_WRITER, SEARCH_CONTENT_WRITER)

SORT_OLD = 'old'
SORT_RECENTLY = 'recently'
SORT_LIKE = 'like'

RELATED_FIELDS = ('writer', 'board__category', 'delete_reason', 'reply__writer')


def with_like_counts(queryset):
    active = Q(likes__deleted_at__isnull=True)
    return queryset.annotate(
        like_cnt=Count('likes', filter=active & Q(likes__is_like=True)),
        dislike_cnt=Count('likes', filter=active & Q(likes__is_dislike=True)),
    )


def filter_comments(
    only_deleted=False,
    user_id=None,
    search=None,
    search_type=None,
    board_id=None,
    is_own=False,
    is_flat=False,
    writer_id=None,
):
    """목록 조건에 맞는 댓글 queryset. 정렬/limit 은 적용하지 않는다."""
    queryset = Comment.objects.all()
    if not is_flat:
        queryset = queryset.top_level()

    if only_deleted:
        queryset = queryset.deleted()
    elif is_flat:
        queryset = queryset.alive()

    if search and search_type:
        if search_type in (SEARCH_CONTENT, SEARCH_CONTENT_WRITER):
            queryset = queryset.filter(content__icontains=search)
        if search_type in (SEARCH_WRITER, SEARCH_CONTENT_WRITER):
            queryset = queryset.filter(writer__nick__icontains=search)

    if is_own and user_id:
        queryset = queryset.filter(writer_id=user_id)
    if writer_id:
        queryset = queryset.filter(writer_id=writer_id)
    if board_id:
        queryset = queryset.filter(board_id=board_id)
    return queryset


def _fetch_page(queryset, sort, limit):
    queryset = with_like_counts(queryset.select_related(*RELATED_FIELDS))
    if sort == SORT_OLD:
        return list(queryset.order_by('created_at', 'id')[:limit])
    if sort == SORT_RECENTLY:
        return list(queryset.order_by('-created_at', '-id')[:limit])

    # 좋아요 정렬은 전체를 읽어 메모리에서 정렬한 뒤 자른다
    comments = list(queryset.order_by('created_at', 'id'))
    comments.sort(key=lambda cmt: cmt.like_cnt, reverse=True)
    return comments[:limit]


def _load_replies(roots):
    """roots 아래 모든 답글을 깊이별로 한 번씩 조회해 {부모 id: [답글]} 로 묶는다."""
    children = defaultdict(list)
    seen = {cmt.id for cmt in roots}
    frontier = list(seen)
    while frontier:
        level = with_like_counts(
            Comment.objects.filter(reply_id__in=frontier).select_related(*RELATED_FIELDS)
        ).order_by('-created_at', '-id')
        frontier = []
        for cmt in level:
            if cmt.id in seen:
                continue
            seen.add(cmt.id)
            children[cmt.reply_id].append(cmt)
            frontier.append(cmt.id)
    return children


def _board_comment_counts(board_ids):
    rows = (
        Comment.objects.alive()
        .filter(board_id__in=board_ids)
        .order_by()
        .values('board_id')
        .annotate(cnt=Count('id'))
    )
    return {row['board_id']: row['cnt'] for row in rows}


class CommentTree:
    """조회된 댓글들을 응답용 dict 트리로 조립한다."""

    def __init__(self, roots, children, user_id=None, include_deleted=False):
        self.children = children
        self.include_deleted = include_deleted

        nodes = list(roots)
        for replies in children.values():
            nodes.extend(replies)
        comment_ids = [cmt.id for cmt in nodes]

        self.board_counts = _board_comment_counts({cmt.board_id for cmt in nodes})
        self.user_likes = {}
        self.user_reports = set()
        if user_id:
            self.user_likes = {
                like.comment_id: like
                for like in CommentLike.objects.filter(
                    user_id=user_id, comment_id__in=comment_ids, deleted_at__isnull=True
                )
            }
            self.user_reports = set(
                CommentReport.objects.filter(
                    reporter_id=user_id, comment_id__in=comment_ids, deleted_at__isnull=True
                ).values_list('comment_id', flat=True)
            )

    def build(self, root):
        """root 아래 트리를 후위 순회로 조립한다. 답글 깊이와 무관하게 재귀를 쓰지 않는다."""
        built = {}
        stack = [(root, False)]
        while stack:
            cmt, expanded = stack.pop()
            replies = self.children.get(cmt.id, [])
            if not expanded:
                stack.append((cmt, True))
                stack.extend((reply, False) for reply in replies)
                continue

            contain_cmt = [built[reply.id] for reply in replies if built.get(reply.id) is not None]
            # 삭제된 댓글은 살아있는 답글이 있을 때만 자리표시로 남긴다
            if not self.include_deleted and cmt.is_deleted and not contain_cmt:
                built[cmt.id] = None
            else:
                built[cmt.id] = self.to_item(cmt, contain_cmt)
        return built[root.id]

    def content_of(self, cmt):
        if self.include_deleted or not cmt.is_deleted:
            return cmt.content
        reason = cmt.delete_reason
        return formatter.tombstone(reason.title if reason else None)

    def to_item(self, cmt, contain_cmt):
        board = cmt.board
        writer = cmt.writer
        reply_writer = cmt.reply.writer if cmt.reply else None
        user_like = self.user_likes.get(cmt.id)
        return {
            'id': cmt.id,
            'board_id': cmt.board_id,
            'board_title': board.title,
            'category': board.category.name,
            'category_path': board.category.path,
            'created_at': cmt.created_at,
            'content': self.content_of(cmt),
            'like': cmt.like_cnt,
            'dislike': cmt.dislike_cnt,
            'reply_id': cmt.reply_id,
            'reply_user': reply_writer.nick if reply_writer else None,
            'reply_user_id': reply_writer.id if reply_writer else None,
            'writer': writer.nick,
            'writer_id': cmt.writer_id,
            'writer_profile': profile_image_url(writer),
            'contain_cmt': contain_cmt,
            'is_do_like': bool(user_like and user_like.is_like),
            'is_do_dislike': bool(user_like and user_like.is_dislike),
            'is_did_report': cmt.id in self.user_reports,
            'is_deleted': cmt.is_deleted,
            'board_cmt_cnt': self.board_counts.get(cmt.board_id, 0),
        }


def get_cmts(
    limit=None,
    only_deleted=False,
    user_id=None,
    is_deleted=False,
    search=None,
    search_type=None,
    board_id=None,
    sort=None,
    is_own=False,
    is_flat=False,
    writer_id=None,
):
    """댓글 목록 조회.

    - is_flat=False: 최상위 댓글만 고르고 답글은 contain_cmt 에 재귀로 붙인다.
    - is_flat=True: 삭제되지 않은 댓글 전체를 평평하게 반환한다.
    - only_deleted: 삭제(본인 삭제 또는 사유 삭제)된 댓글만 고른다.
    - sort: 'old', 'recently' 는 DB 에서 limit 을 걸고, 그 외('like' 기본)는
      전체를 읽어 좋아요 수로 정렬한 뒤 limit 만큼 자른다.

    반환값: {'cmt_list': [...], 'cmt_cnt': limit 적용 전 전체 개수}
    """
    if limit is None:
        limit = settings.CMT_DEFAULT_LIMIT

    queryset = filter_comments(
        only_deleted=only_deleted,
        user_id=user_id,
        search=search,
        search_type=search_type,
        board_id=board_id,
        is_own=is_own,
        is_flat=is_flat,
        writer_id=writer_id,
    )
    roots = _fetch_page(queryset, sort, limit)
    children = {} if is_flat else _load_replies(roots)

    tree = CommentTree(roots, children, user_id=user_id, include_deleted=is_deleted or only_deleted)
    cmt_list = []
    for cmt in roots:
        item = tree.build(cmt)
        if item is not None:
            cmt_list.append(item)

    cmt_cnt = queryset.count()
    logger.debug(f"댓글 목록 조회 (sort={sort or SORT_LIKE}, board={board_id}): {len(cmt_list)}/{cmt_cnt}")
    return {'cmt_list': cmt_list, 'cmt_cnt': cmt_cnt}
