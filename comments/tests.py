import sys

from django.contrib import admin
from django.db.models import ProtectedError
from django.test import RequestFactory, SimpleTestCase, TestCase, override_settings

from users.models import User
from boards.models import Board, Category, Reason
from .admin import CommentAdmin
from . import formatter, services
from .models import Comment, CommentLike, CommentReport
from .selectors import get_cmts
from .serializers import CommentFilterSerializer, CommentListSerializer


class FormatterTest(SimpleTestCase):
    def test_make_and_parse_round_trip(self):
        packed = formatter.make('hello world', formatter.EDITED_MARKER, 'https://img/a.png')
        parsed = formatter.parse(packed)
        self.assertEqual(parsed.content, 'hello world')
        self.assertEqual(parsed.marker, formatter.EDITED_MARKER)
        self.assertEqual(parsed.img, 'https://img/a.png')

    def test_round_trip_without_marker_and_image(self):
        parsed = formatter.parse(formatter.make('just text'))
        self.assertEqual(parsed, ('just text', '', ''))

    def test_remake_keeps_unspecified_parts(self):
        packed = formatter.make('old text', '', 'https://img/a.png')
        result = formatter.parse(formatter.remake(packed, formatter.EDITED_MARKER, 'new text'))
        self.assertEqual(result, ('new text', formatter.EDITED_MARKER, 'https://img/a.png'))

    def test_remake_replaces_image(self):
        packed = formatter.make('text', '', 'https://img/a.png')
        result = formatter.parse(formatter.remake(packed, img='https://img/b.png'))
        self.assertEqual(result.img, 'https://img/b.png')
        self.assertEqual(result.content, 'text')

    def test_unpacked_content_is_not_parseable(self):
        self.assertIsNone(formatter.parse('plain legacy content'))
        self.assertIsNone(formatter.remake('plain legacy content', formatter.DELETED_MARKER))
        self.assertIsNone(formatter.parse(None))

    def test_separator_is_removed_from_parts(self):
        packed = formatter.make(f'a{formatter.SEP}b')
        self.assertEqual(formatter.parse(packed).content, 'ab')

    def test_deleted_message(self):
        self.assertEqual(formatter.deleted_message(), formatter.USER_DELETED_MESSAGE)
        self.assertIn('스팸', formatter.deleted_message('스팸'))


class CommentTestMixin:
    def setUp(self):
        self.user = User.objects.create_user(email='writer@example.com', username='writer', nick='작성자', password='password123')
        self.other = User.objects.create_user(email='other@example.com', username='other', nick='다른사람', password='password123')
        self.category = Category.objects.create(name='자유게시판', path='free')
        self.board = Board.objects.create(title='Test Board', category=self.category, writer=self.user)
        self.report_reason = Reason.objects.create(title='스팸/광고', reason_type=Reason.ReasonType.CMT_REPORT)
        self.delete_reason = Reason.objects.create(title='운영 정책 위반', reason_type=Reason.ReasonType.CMT_DELETE)

    def make_user(self, name):
        return User.objects.create_user(email=f'{name}@example.com', username=name, nick=name, password='password123')

    def add(self, content='댓글', user=None, reply=None, **kwargs):
        user = user or self.user
        if reply is not None:
            return services.add_cmt(user.id, content, reply_id=reply.id, **kwargs)
        return services.add_cmt(user.id, content, board_id=self.board.id, **kwargs)


class AddCommentTest(CommentTestMixin, TestCase):
    def test_add_comment_to_board(self):
        cmt = self.add('첫 댓글')
        self.assertIsNotNone(cmt)
        self.assertEqual(cmt.board_id, self.board.id)
        self.assertIsNone(cmt.reply_id)
        self.assertEqual(formatter.parse(cmt.content).content, '첫 댓글')

    def test_reply_inherits_board_at_any_depth(self):
        root = self.add('root')
        child = self.add('child', user=self.other, reply=root)
        grandchild = services.add_cmt(self.user.id, 'grandchild', board_id=None, reply_id=child.id)

        self.assertEqual(child.board_id, self.board.id)
        self.assertEqual(grandchild.board_id, self.board.id)
        self.assertEqual(grandchild.reply_id, child.id)

    def test_reply_target_wins_over_board(self):
        other_board = Board.objects.create(title='Other', category=self.category)
        root = self.add('root')
        reply = services.add_cmt(self.user.id, 'reply', board_id=other_board.id, reply_id=root.id)
        self.assertEqual(reply.board_id, self.board.id)

    def test_add_without_target_or_content_creates_nothing(self):
        self.assertIsNone(services.add_cmt(self.user.id, '', board_id=None, reply_id=None))
        self.assertIsNone(services.add_cmt(self.user.id, 'content', board_id=None, reply_id=None))
        self.assertIsNone(services.add_cmt(self.user.id, '', board_id=self.board.id))
        self.assertEqual(Comment.objects.count(), 0)

    def test_add_to_deleted_board_or_comment_fails(self):
        root = self.add('root')
        services.delete_cmt(self.user.id, root.id)
        self.assertIsNone(self.add('reply', reply=root))

        self.board.delete_reason = Reason.objects.create(title='삭제', reason_type=Reason.ReasonType.BOARD_DELETE)
        self.board.save()
        self.assertIsNone(self.add('on deleted board'))

    @override_settings(IMAGE_BASE_URL='https://img.test/?name=')
    def test_add_image_only_comment(self):
        cmt = self.add('', img='photo.png')
        parsed = formatter.parse(cmt.content)
        self.assertEqual(parsed.content, '')
        self.assertEqual(parsed.img, 'https://img.test/?name=photo.png')

    def test_html_is_stripped(self):
        cmt = self.add('<b>안녕</b>하세요')
        self.assertEqual(formatter.parse(cmt.content).content, '안녕하세요')


class DeleteCommentTest(CommentTestMixin, TestCase):
    def test_owner_can_delete(self):
        cmt = self.add('삭제할 댓글')
        self.assertTrue(services.delete_cmt(self.user.id, cmt.id))

        cmt.refresh_from_db()
        self.assertIsNotNone(cmt.deleted_at)
        parsed = formatter.parse(cmt.content)
        self.assertEqual(parsed.content, '삭제할 댓글')
        self.assertEqual(parsed.marker, formatter.DELETED_MARKER)

    def test_other_user_cannot_delete(self):
        cmt = self.add()
        self.assertFalse(services.delete_cmt(self.other.id, cmt.id))
        cmt.refresh_from_db()
        self.assertIsNone(cmt.deleted_at)

    def test_delete_twice_fails(self):
        cmt = self.add()
        self.assertTrue(services.delete_cmt(self.user.id, cmt.id))
        self.assertFalse(services.delete_cmt(self.user.id, cmt.id))

    def test_missing_arguments(self):
        self.assertFalse(services.delete_cmt(None, 1))
        self.assertFalse(services.delete_cmt(self.user.id, None))


class UpdateCommentTest(CommentTestMixin, TestCase):
    @override_settings(IMAGE_BASE_URL='https://img.test/?name=')
    def test_text_edit_keeps_image(self):
        cmt = self.add('before', img='a.png')
        self.assertTrue(services.update_cmt(self.user.id, cmt.id, False, 'after'))

        cmt.refresh_from_db()
        self.assertEqual(
            formatter.parse(cmt.content),
            ('after', formatter.EDITED_MARKER, 'https://img.test/?name=a.png'),
        )

    @override_settings(IMAGE_BASE_URL='https://img.test/?name=')
    def test_delete_image(self):
        cmt = self.add('before', img='a.png')
        self.assertTrue(services.update_cmt(self.user.id, cmt.id, True, 'after'))

        cmt.refresh_from_db()
        self.assertEqual(formatter.parse(cmt.content), ('after', formatter.EDITED_MARKER, ''))

    @override_settings(IMAGE_BASE_URL='https://img.test/?name=')
    def test_replace_image(self):
        cmt = self.add('text', img='a.png')
        self.assertTrue(services.update_cmt(self.user.id, cmt.id, False, None, 'b.png'))

        cmt.refresh_from_db()
        self.assertEqual(
            formatter.parse(cmt.content),
            ('', formatter.EDITED_MARKER, 'https://img.test/?name=b.png'),
        )

    def test_update_requires_owner_and_content(self):
        cmt = self.add('text')
        self.assertFalse(services.update_cmt(self.other.id, cmt.id, False, 'hack'))
        self.assertFalse(services.update_cmt(self.user.id, cmt.id, False, ''))
        self.assertFalse(services.update_cmt(self.user.id, cmt.id, False, None))

    def test_update_deleted_comment_fails(self):
        cmt = self.add('text')
        services.delete_cmt(self.user.id, cmt.id)
        self.assertFalse(services.update_cmt(self.user.id, cmt.id, False, 'again'))

    def test_unparseable_content_fails(self):
        cmt = Comment.objects.create(board=self.board, writer=self.user, content='legacy content')
        self.assertFalse(services.update_cmt(self.user.id, cmt.id, False, 'new'))
        cmt.refresh_from_db()
        self.assertEqual(cmt.content, 'legacy content')


class LikeCommentTest(CommentTestMixin, TestCase):
    def test_like_toggles_without_touching_dislike(self):
        cmt = self.add()
        self.assertTrue(services.like_cmt(self.other.id, cmt.id, is_dislike=True))

        self.assertTrue(services.like_cmt(self.other.id, cmt.id, is_dislike=False))
        like = CommentLike.objects.get(user=self.other, comment=cmt)
        self.assertTrue(like.is_like)
        self.assertTrue(like.is_dislike)

        self.assertTrue(services.like_cmt(self.other.id, cmt.id, is_dislike=False))
        like.refresh_from_db()
        self.assertFalse(like.is_like)
        self.assertTrue(like.is_dislike)
        self.assertEqual(CommentLike.objects.filter(user=self.other, comment=cmt).count(), 1)

    def test_like_requires_live_comment_and_user(self):
        cmt = self.add()
        services.delete_cmt(self.user.id, cmt.id)
        self.assertFalse(services.like_cmt(self.other.id, cmt.id))
        self.assertFalse(services.like_cmt(None, cmt.id))
        self.assertEqual(CommentLike.objects.count(), 0)


class ReportCommentTest(CommentTestMixin, TestCase):
    def test_report_only_once(self):
        cmt = self.add()
        self.assertTrue(services.report_cmt(self.other.id, cmt.id, self.report_reason.id))
        self.assertFalse(services.report_cmt(self.other.id, cmt.id, self.report_reason.id))
        self.assertEqual(CommentReport.objects.filter(reporter=self.other, comment=cmt).count(), 1)

    def test_report_requires_comment_report_reason(self):
        cmt = self.add()
        self.assertFalse(services.report_cmt(self.other.id, cmt.id, self.delete_reason.id))
        self.assertFalse(services.report_cmt(self.other.id, cmt.id, None))
        self.assertEqual(CommentReport.objects.count(), 0)


class ModerateCommentTest(CommentTestMixin, TestCase):
    def test_moderate_and_restore(self):
        cmt = self.add()
        self.assertFalse(services.moderate_cmt(cmt.id, self.report_reason.id))
        self.assertTrue(services.moderate_cmt(cmt.id, self.delete_reason.id))
        cmt.refresh_from_db()
        self.assertTrue(cmt.is_deleted)

        self.assertTrue(services.restore_cmt(cmt.id))
        cmt.refresh_from_db()
        self.assertFalse(cmt.is_deleted)

    def test_restore_does_not_revive_user_deleted_comment(self):
        cmt = self.add()
        services.delete_cmt(self.user.id, cmt.id)
        self.assertFalse(services.restore_cmt(cmt.id))


    def test_delete_reason_in_use_cannot_be_removed(self):
        cmt = self.add()
        services.moderate_cmt(cmt.id, self.delete_reason.id)

        with self.assertRaises(ProtectedError):
            self.delete_reason.delete()
        self.assertEqual(get_cmts(limit=10)['cmt_list'], [])
        cmt.refresh_from_db()
        self.assertEqual(cmt.delete_reason, self.delete_reason)

    def test_admin_cannot_hard_delete(self):
        staff = User.objects.create_superuser(email='admin@example.com', username='admin', password='password123')
        request = RequestFactory().get('/admin/comments/comment/')
        request.user = staff
        model_admin = CommentAdmin(Comment, admin.site)

        self.assertFalse(model_admin.has_delete_permission(request))
        actions = model_admin.get_actions(request)
        self.assertNotIn('delete_selected', actions)
        self.assertIn('moderate_selected', actions)


class GetCommentsTest(CommentTestMixin, TestCase):
    def ids(self, result):
        return [item['id'] for item in result['cmt_list']]

    def test_deleted_comment_without_replies_is_hidden(self):
        alive = self.add('alive')
        deleted = self.add('deleted')
        services.delete_cmt(self.user.id, deleted.id)

        result = get_cmts(limit=10, board_id=self.board.id)
        self.assertEqual(self.ids(result), [alive.id])

        result = get_cmts(limit=10, board_id=self.board.id, only_deleted=True)
        self.assertEqual(self.ids(result), [deleted.id])
        self.assertEqual(result['cmt_cnt'], 1)

    def test_deleted_comment_with_reply_is_tombstone(self):
        parent = self.add('parent')
        reply = self.add('reply', user=self.other, reply=parent)
        services.delete_cmt(self.user.id, parent.id)

        result = get_cmts(limit=10, board_id=self.board.id)
        self.assertEqual(self.ids(result), [parent.id])
        item = result['cmt_list'][0]
        self.assertTrue(item['is_deleted'])
        self.assertEqual(item['content'], formatter.tombstone())
        self.assertEqual([child['id'] for child in item['contain_cmt']], [reply.id])

        child = item['contain_cmt'][0]
        self.assertEqual(child['reply_user'], self.user.nick)
        self.assertEqual(child['reply_user_id'], self.user.id)

    def test_moderated_tombstone_shows_reason(self):
        parent = self.add('parent')
        self.add('reply', user=self.other, reply=parent)
        services.moderate_cmt(parent.id, self.delete_reason.id)

        item = get_cmts(limit=10, board_id=self.board.id)['cmt_list'][0]
        self.assertEqual(item['content'], formatter.tombstone(self.delete_reason.title))

    def test_deleted_chain_kept_for_live_descendant(self):
        root = self.add('root')
        middle = self.add('middle', reply=root)
        leaf = self.add('leaf', user=self.other, reply=middle)
        lonely = self.add('lonely', reply=root)
        services.delete_cmt(self.user.id, root.id)
        services.delete_cmt(self.user.id, middle.id)
        services.delete_cmt(self.user.id, lonely.id)

        item = get_cmts(limit=10, board_id=self.board.id)['cmt_list'][0]
        self.assertEqual(item['id'], root.id)
        self.assertEqual([c['id'] for c in item['contain_cmt']], [middle.id])
        self.assertEqual(item['contain_cmt'][0]['contain_cmt'][0]['id'], leaf.id)

    def test_is_deleted_override_shows_stored_content(self):
        cmt = self.add('text')
        services.delete_cmt(self.user.id, cmt.id)
        cmt.refresh_from_db()

        result = get_cmts(limit=10, board_id=self.board.id, is_deleted=True)
        self.assertEqual(result['cmt_list'][0]['content'], cmt.content)

    def test_sort_by_like_truncates_in_memory(self):
        likers = [self.make_user(f'liker{i}') for i in range(3)]
        first = self.add('three likes')
        second = self.add('one like')
        third = self.add('two likes')
        for liker in likers:
            services.like_cmt(liker.id, first.id)
        services.like_cmt(likers[0].id, second.id)
        for liker in likers[:2]:
            services.like_cmt(liker.id, third.id)

        result = get_cmts(limit=2, board_id=self.board.id, sort='like')
        self.assertEqual(self.ids(result), [first.id, third.id])
        self.assertEqual([item['like'] for item in result['cmt_list']], [3, 2])
        self.assertEqual(result['cmt_cnt'], 3)

    def test_sort_by_date(self):
        first = self.add('first')
        second = self.add('second')
        third = self.add('third')

        self.assertEqual(self.ids(get_cmts(limit=2, board_id=self.board.id, sort='old')), [first.id, second.id])
        self.assertEqual(self.ids(get_cmts(limit=2, board_id=self.board.id, sort='recently')), [third.id, second.id])

    def test_replies_are_newest_first(self):
        root = self.add('root')
        older = self.add('older', reply=root)
        newer = self.add('newer', reply=root)

        item = get_cmts(limit=10, board_id=self.board.id)['cmt_list'][0]
        self.assertEqual([c['id'] for c in item['contain_cmt']], [newer.id, older.id])

    def test_search(self):
        mine = self.add('apple pie')
        theirs = self.add('apple juice', user=self.other)
        self.add('banana')

        result = get_cmts(limit=10, search='apple', search_type='content', sort='old')
        self.assertEqual(self.ids(result), [mine.id, theirs.id])

        result = get_cmts(limit=10, search='다른', search_type='writer')
        self.assertEqual(self.ids(result), [theirs.id])

        result = get_cmts(limit=10, search='apple', search_type='contentWriter')
        self.assertEqual(self.ids(result), [])

    def test_own_and_writer_filters(self):
        mine = self.add('mine')
        theirs = self.add('theirs', user=self.other)

        self.assertEqual(self.ids(get_cmts(limit=10, user_id=self.user.id, is_own=True)), [mine.id])
        self.assertEqual(self.ids(get_cmts(limit=10, writer_id=self.other.id)), [theirs.id])

    def test_flat_lists_live_comments_without_nesting(self):
        root = self.add('root')
        reply = self.add('reply', reply=root)
        deleted = self.add('deleted')
        services.delete_cmt(self.user.id, deleted.id)

        result = get_cmts(limit=10, board_id=self.board.id, is_flat=True, sort='old')
        self.assertEqual(self.ids(result), [root.id, reply.id])
        self.assertTrue(all(item['contain_cmt'] == [] for item in result['cmt_list']))
        self.assertEqual(result['cmt_cnt'], 2)

    def test_search_content_and_writer_must_both_match(self):
        both = self.add('작성자 후기')
        self.add('작성 중', user=self.other)
        self.add('다른 글')

        result = get_cmts(limit=10, search='작성', search_type='contentWriter')
        self.assertEqual(self.ids(result), [both.id])
        self.assertEqual(result['cmt_cnt'], 1)

    def test_only_deleted_includes_moderated(self):
        self.add('alive')
        moderated = self.add('moderated')
        services.moderate_cmt(moderated.id, self.delete_reason.id)
        moderated.refresh_from_db()
        self.assertIsNone(moderated.deleted_at)

        result = get_cmts(limit=10, board_id=self.board.id, only_deleted=True)
        self.assertEqual(self.ids(result), [moderated.id])
        self.assertTrue(result['cmt_list'][0]['is_deleted'])
        self.assertEqual(result['cmt_list'][0]['content'], moderated.content)

    def test_board_count_excludes_deleted(self):
        cmt = self.add('first')
        self.add('second')
        deleted = self.add('third')
        self.assertEqual(get_cmts(limit=10, board_id=self.board.id)['cmt_list'][0]['board_cmt_cnt'], 3)

        services.delete_cmt(self.user.id, deleted.id)
        items = get_cmts(limit=10, board_id=self.board.id)['cmt_list']
        self.assertEqual(len(items), 2)
        self.assertTrue(all(item['board_cmt_cnt'] == 2 for item in items))

        services.moderate_cmt(cmt.id, self.delete_reason.id)
        item = get_cmts(limit=10, board_id=self.board.id)['cmt_list'][0]
        self.assertEqual(item['board_cmt_cnt'], 1)

    def test_deep_reply_chain(self):
        depth = sys.getrecursionlimit() + 50
        root = parent = Comment.objects.create(board=self.board, writer=self.user, content=formatter.make('0'))
        for i in range(1, depth):
            parent = Comment.objects.create(
                board=self.board, writer=self.user, content=formatter.make(str(i)), reply=parent
            )

        item = get_cmts(limit=1, board_id=self.board.id)['cmt_list'][0]
        self.assertEqual(item['id'], root.id)
        levels = 1
        while item['contain_cmt']:
            item = item['contain_cmt'][0]
            levels += 1
        self.assertEqual(levels, depth)
        self.assertEqual(item['id'], parent.id)

    @override_settings(IMAGE_BASE_URL='https://img.test/?name=', DEFAULT_PROFILE_IMG='base.png')
    def test_item_fields(self):
        self.other.profile_img = 'me.png'
        self.other.save()
        cmt = self.add('hello')
        reply = self.add('hi', user=self.other, reply=cmt)
        services.like_cmt(self.other.id, cmt.id)
        services.like_cmt(self.user.id, cmt.id, is_dislike=True)
        services.report_cmt(self.other.id, cmt.id, self.report_reason.id)

        item = get_cmts(limit=10, board_id=self.board.id, user_id=self.other.id)['cmt_list'][0]
        self.assertEqual(item['writer'], '작성자')
        self.assertEqual(item['writer_profile'], 'https://img.test/?name=base.png')
        self.assertEqual(item['board_title'], 'Test Board')
        self.assertEqual(item['category'], '자유게시판')
        self.assertEqual(item['category_path'], 'free')
        self.assertEqual(item['like'], 1)
        self.assertEqual(item['dislike'], 1)
        self.assertTrue(item['is_do_like'])
        self.assertFalse(item['is_do_dislike'])
        self.assertTrue(item['is_did_report'])
        self.assertEqual(item['board_cmt_cnt'], 2)
        self.assertIsNone(item['reply_user'])

        child = item['contain_cmt'][0]
        self.assertEqual(child['id'], reply.id)
        self.assertEqual(child['writer_profile'], 'https://img.test/?name=me.png')
        self.assertFalse(child['is_did_report'])

    def test_anonymous_flags_are_false(self):
        cmt = self.add()
        services.like_cmt(self.other.id, cmt.id)
        item = get_cmts(limit=10)['cmt_list'][0]
        self.assertFalse(item['is_do_like'])
        self.assertFalse(item['is_did_report'])


class CommentSerializerTest(CommentTestMixin, TestCase):
    @override_settings(CMT_DEFAULT_LIMIT=7)
    def test_filter_defaults(self):
        serializer = CommentFilterSerializer(data={})
        self.assertTrue(serializer.is_valid(), serializer.errors)
        self.assertEqual(serializer.validated_data['limit'], 7)
        self.assertFalse(serializer.validated_data['is_flat'])
        self.assertEqual(serializer.validated_data['sort'], 'like')

    def test_filter_rejects_unknown_search_type(self):
        serializer = CommentFilterSerializer(data={'search': 'a', 'search_type': 'title'})
        self.assertFalse(serializer.is_valid())
        self.assertIn('search_type', serializer.errors)

    def test_list_renders_nested_replies(self):
        root = self.add('root')
        reply = self.add('reply', user=self.other, reply=root)

        serializer = CommentFilterSerializer(data={'board_id': self.board.id, 'limit': 5})
        self.assertTrue(serializer.is_valid(), serializer.errors)
        data = CommentListSerializer(get_cmts(**serializer.validated_data)).data

        self.assertEqual(data['cmt_cnt'], 1)
        self.assertEqual(data['cmt_list'][0]['id'], root.id)
        self.assertEqual(data['cmt_list'][0]['contain_cmt'][0]['id'], reply.id)
        self.assertEqual(data['cmt_list'][0]['contain_cmt'][0]['reply_user'], '작성자')
