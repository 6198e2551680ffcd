from django.test import TestCase
from django.utils import timezone

from users.models import User


class UserManagerTest(TestCase):
    def test_create_user(self):
        user = User.objects.create_user(email='Test@Example.com', username='testuser', nick='테스터', password='password123')
        self.assertEqual(user.email, 'Test@example.com')
        self.assertEqual(user.nick, '테스터')
        self.assertTrue(user.check_password('password123'))
        self.assertTrue(user.is_active)
        self.assertFalse(user.is_staff)

    def test_nick_defaults_to_username(self):
        user = User.objects.create_user(email='a@example.com', username='alpha', password='password123')
        self.assertEqual(user.nick, 'alpha')

    def test_create_user_requires_email(self):
        with self.assertRaises(ValueError):
            User.objects.create_user(email='', username='nomail', password='password123')

    def test_create_superuser(self):
        admin = User.objects.create_superuser(email='admin@example.com', username='admin', password='password123')
        self.assertTrue(admin.is_staff)
        self.assertTrue(admin.is_superuser)

        with self.assertRaises(ValueError):
            User.objects.create_superuser(email='bad@example.com', username='bad', password='password123', is_staff=False)

    def test_alive_excludes_withdrawn_users(self):
        alive = User.objects.create_user(email='alive@example.com', username='alive', password='password123')
        gone = User.objects.create_user(email='gone@example.com', username='gone', password='password123')
        gone.deleted_at = timezone.now()
        gone.save()

        self.assertEqual(list(User.objects.alive()), [alive])
