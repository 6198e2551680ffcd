from io import StringIO

from django.core.management import call_command
from django.db.models import ProtectedError
from django.test import TestCase
from django.utils import timezone

from users.models import User
from .models import Board, Category, Reason


class BoardQuerySetTest(TestCase):
    def setUp(self):
        self.user = User.objects.create_user(email='test@example.com', username='testuser', password='password123')
        self.category = Category.objects.create(name='Test Category', path='test')

    def test_alive_excludes_deleted_boards(self):
        alive = Board.objects.create(title='alive', category=self.category, writer=self.user)
        Board.objects.create(title='deleted', category=self.category, deleted_at=timezone.now())
        reason = Reason.objects.create(title='운영 정책 위반', reason_type=Reason.ReasonType.BOARD_DELETE)
        Board.objects.create(title='moderated', category=self.category, delete_reason=reason)

        self.assertEqual(list(Board.objects.alive()), [alive])

    def test_delete_reason_in_use_cannot_be_removed(self):
        reason = Reason.objects.create(title='운영 정책 위반', reason_type=Reason.ReasonType.BOARD_DELETE)
        board = Board.objects.create(title='moderated', category=self.category, delete_reason=reason)

        with self.assertRaises(ProtectedError):
            reason.delete()
        board.refresh_from_db()
        self.assertEqual(board.delete_reason, reason)
        self.assertFalse(Board.objects.alive().exists())


class ReasonTest(TestCase):
    def test_of_type_and_alive(self):
        report = Reason.objects.create(title='스팸', reason_type=Reason.ReasonType.CMT_REPORT)
        Reason.objects.create(title='삭제', reason_type=Reason.ReasonType.CMT_DELETE)
        Reason.objects.create(title='예전 사유', reason_type=Reason.ReasonType.CMT_REPORT, deleted_at=timezone.now())

        reasons = Reason.objects.alive().of_type(Reason.ReasonType.CMT_REPORT)
        self.assertEqual(list(reasons), [report])

    def test_seed_reasons_is_idempotent(self):
        out = StringIO()
        call_command('seed_reasons', stdout=out)
        count = Reason.objects.count()
        self.assertGreater(count, 0)
        self.assertTrue(Reason.objects.filter(reason_type=Reason.ReasonType.CMT_REPORT).exists())

        call_command('seed_reasons', stdout=out)
        self.assertEqual(Reason.objects.count(), count)
