from datetime import date

from django.core.management.base import BaseCommand
from django.db import transaction

from accounts import services
from accounts.models import User
from leave.models import Holiday


class Command(BaseCommand):
    help = 'Seed demo data: an admin, a manager with two reports and some company holidays.'

    def add_arguments(self, parser):
        parser.add_argument('--year', type=int, default=date.today().year)
        parser.add_argument('--password', type=str, default='Password123!')

    def _user(self, email, **fields):
        user = User.objects.filter(email=email).first()
        if user is not None:
            return user, False
        return services.create_user(email=email, welcome_email=False, **fields), True

    def handle(self, *args, **options):
        year = options['year']
        password = options['password']

        with transaction.atomic():
            base_holidays = [
                ("New Year's Day", date(year, 1, 1)),
                ('Independence Day', date(year, 7, 4)),
                ('Christmas Day', date(year, 12, 25)),
            ]
            for name, day in base_holidays:
                Holiday.objects.get_or_create(date=day, defaults={'name': name})

            self._user(
                'admin@example.com', first_name='Alice', last_name='Admin', department='HR',
                role=User.ROLE_ADMIN, password=password,
            )
            manager, _ = self._user(
                'manager@example.com', first_name='Mark', last_name='Manager', department='Engineering',
                role=User.ROLE_MANAGER, password=password,
            )
            demo = [
                ('emma@example.com', 'Emma', 'Stone'),
                ('liam@example.com', 'Liam', 'Brooks'),
            ]
            for email, first_name, last_name in demo:
                user, created = self._user(
                    email, first_name=first_name, last_name=last_name, department='Engineering',
                    password=password, manager=manager,
                )
                if not created and user.manager_id != manager.pk:
                    user.manager = manager
                    user.save(update_fields=['manager', 'updated_at'])

        self.stdout.write(self.style.SUCCESS('Seeded demo data. Default password: %s' % password))
