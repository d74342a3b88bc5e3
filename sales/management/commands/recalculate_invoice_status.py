from django.core.management.base import BaseCommand
from django.db import transaction

from sales.models import Invoice


class Command(BaseCommand):
    help = 'Recompute invoice status (pending/paid) from the paid amount; drafts are left alone'

    def add_arguments(self, parser):
        parser.add_argument(
            '--dry-run',
            action='store_true',
            help='Only report the invoices that would change',
        )

    def handle(self, *args, **options):
        dry_run = options['dry_run']
        self.stdout.write(self.style.WARNING('Checking invoice statuses...'))

        invoices = Invoice.objects.exclude(status=Invoice.DRAFT)
        total = invoices.count()
        updated = 0

        with transaction.atomic():
            for invoice in invoices:
                new_status = Invoice.resolve_status(invoice.total, invoice.paid_amount)
                if new_status == invoice.status:
                    continue

                self.stdout.write(
                    f"✓ {invoice.number}: {invoice.status} → {new_status} "
                    f"(paid {invoice.paid_amount} / {invoice.total})"
                )
                if not dry_run:
                    invoice.status = new_status
                    invoice.save(update_fields=['status', 'updated_at'])
                updated += 1

        # Summary
        self.stdout.write(self.style.SUCCESS('\n' + '=' * 60))
        self.stdout.write(f"Invoices checked: {total}")
        self.stdout.write(f"{'Would update' if dry_run else 'Updated'}: {updated}")
        self.stdout.write(self.style.SUCCESS('=' * 60))
