import logging
from datetime import date

import holidays
from django.core.management.base import BaseCommand, CommandError
from django.db import transaction

from leave.models import Holiday

logger = logging.getLogger(__name__)


class Command(BaseCommand):
    help = 'Import public holidays for a country (and optional subdivision) into the holiday registry.'

    def add_arguments(self, parser):
        parser.add_argument('--country', type=str, required=True, help='ISO 3166-1 alpha-2 code, e.g. US')
        parser.add_argument('--subdiv', type=str, default=None, help='Subdivision code, e.g. CA')
        parser.add_argument('--year', type=int, default=date.today().year)

    def handle(self, *args, **options):
        country = options['country'].upper()
        subdiv = options['subdiv']
        year = options['year']

        try:
            calendar = holidays.country_holidays(country, subdiv=subdiv, years=year)
        except NotImplementedError as exc:
            raise CommandError(str(exc))

        holiday_type = Holiday.TYPE_REGIONAL if subdiv else Holiday.TYPE_NATIONAL
        created = skipped = 0
        with transaction.atomic():
            for day, name in sorted(calendar.items()):
                _, was_created = Holiday.objects.get_or_create(
                    date=day,
                    defaults={'name': name[:100], 'holiday_type': holiday_type},
                )
                if was_created:
                    created += 1
                else:
                    skipped += 1

        region = f'{country}-{subdiv}' if subdiv else country
        logger.info('Imported %d holidays for %s %d (%d dates already taken)', created, region, year, skipped)
        self.stdout.write(self.style.SUCCESS(
            f'Imported {created} holidays for {region} {year}; skipped {skipped} existing dates.'
        ))
