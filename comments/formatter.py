"""댓글 본문 포맷터.

댓글 한 건은 본문, 표시 문구(수정됨/삭제됨), 이미지 URL 세 부분을
하나의 문자열로 묶어 ``Comment.content`` 에 저장한다.

    본문 + SEP + 표시 문구 + SEP + 이미지 URL

``make`` 로 묶고 ``parse`` 로 나누며, ``remake`` 는 저장된 문자열을 나눈 뒤
지정한 부분만 바꿔 다시 묶는다. 본문만 수정해도 이미지가 유지되는 것은
``remake`` 덕분이다.
"""
from typing import NamedTuple, Optional

SEP = '\x1f'

EDITED_MARKER = '(*수정됨)'
DELETED_MARKER = '(*삭제됨)'
TOMBSTONE_MARKER = '(*삭제된 댓글입니다)'

USER_DELETED_MESSAGE = '사용자에 의해 삭제된 댓글입니다'
REASON_DELETED_MESSAGE = "'{title}' 사유에 의해 삭제된 댓글입니다"


class ParsedComment(NamedTuple):
    content: str
    marker: str
    img: str


def _clean(value):
    return (value or '').replace(SEP, '')


def make(content, marker='', img=''):
    return SEP.join((_clean(content), _clean(marker), _clean(img)))


def parse(packed) -> Optional[ParsedComment]:
    if not isinstance(packed, str):
        return None
    parts = packed.split(SEP)
    if len(parts) != 3:
        return None
    return ParsedComment(*parts)


def remake(packed, marker=None, content=None, img=None) -> Optional[str]:
    """저장된 문자열에서 None 이 아닌 인자만 덮어써 다시 묶는다."""
    parsed = parse(packed)
    if parsed is None:
        return None
    return make(
        parsed.content if content is None else content,
        parsed.marker if marker is None else marker,
        parsed.img if img is None else img,
    )


def deleted_message(reason_title=None):
    if reason_title:
        return REASON_DELETED_MESSAGE.format(title=reason_title)
    return USER_DELETED_MESSAGE


def tombstone(reason_title=None):
    return make(deleted_message(reason_title), TOMBSTONE_MARKER)
