from django.contrib.auth import get_user_model
from django.core.management.base import BaseCommand, CommandError

from users.models import Profile

User = get_user_model()


class Command(BaseCommand):
    help = 'Create (or update) a practice staff account that logs in with its email'

    def add_arguments(self, parser):
        parser.add_argument('email')
        parser.add_argument('password')
        parser.add_argument('--full-name', default='')
        parser.add_argument(
            '--role',
            default='assistant',
            choices=[choice for choice, _ in Profile.ROLE_CHOICES],
        )

    def handle(self, *args, **options):
        email = options['email'].strip().lower()
        if '@' not in email:
            raise CommandError(f"Invalid email: {email}")

        user, created = User.objects.get_or_create(
            username=email,
            defaults={'email': email},
        )
        user.email = email
        user.is_staff = options['role'] == 'admin'
        user.set_password(options['password'])
        user.save()

        profile = user.profile
        profile.full_name = options['full_name']
        profile.role = options['role']
        profile.save()

        if created:
            self.stdout.write(self.style.SUCCESS(f'✓ Created {profile.role}: {email}'))
        else:
            self.stdout.write(self.style.WARNING(f'- Updated existing user: {email} ({profile.role})'))
