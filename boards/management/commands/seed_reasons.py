from django.core.management.base import BaseCommand
from boards.models import Reason

DEFAULT_REASONS = {
    Reason.ReasonType.CMT_REPORT: ['욕설/비방', '스팸/광고', '음란성', '도배'],
    Reason.ReasonType.CMT_DELETE: ['운영 정책 위반', '신고 누적'],
    Reason.ReasonType.BOARD_REPORT: ['욕설/비방', '스팸/광고', '음란성', '도배'],
    Reason.ReasonType.BOARD_DELETE: ['운영 정책 위반', '신고 누적'],
}


class Command(BaseCommand):
    help = 'Creates the default report and deletion reasons if they do not exist.'

    def handle(self, *args, **options):
        self.stdout.write(self.style.SUCCESS('Starting reason seeding...'))

        created_count = 0
        for reason_type, titles in DEFAULT_REASONS.items():
            for title in titles:
                reason, created = Reason.objects.get_or_create(
                    title=title,
                    reason_type=reason_type,
                    deleted_at=None,
                )
                if created:
                    created_count += 1
                    self.stdout.write(f'Created reason: {reason}')

        self.stdout.write(self.style.SUCCESS(f'Successfully created {created_count} reasons.'))
