from django.core.management.base import BaseCommand
from apps.identity.models import User
from apps.todos.models import Todo, TodoPriority


DEMO_PASSWORD = 'password'

DEMO_USERS = [
    {
        'name': 'Ann Example',
        'email': 'ann@example.com',
        'todos': [
            {'title': 'Buy milk', 'priority': TodoPriority.LOW},
            {'title': 'File taxes', 'priority': TodoPriority.HIGH, 'description': 'Before the deadline'},
        ],
    },
    {
        'name': 'Ben Example',
        'email': 'ben@example.com',
        'todos': [
            {'title': 'Fix the bike', 'priority': TodoPriority.MEDIUM},
            {'title': 'Call the dentist', 'priority': TodoPriority.LOW, 'completed': True},
        ],
    },
]


class Command(BaseCommand):
    help = 'Seeds the database with demo users and a few todos each'

    def add_arguments(self, parser):
        parser.add_argument(
            '--password',
            default=DEMO_PASSWORD,
            help='Password for every demo account',
        )

    def handle(self, *args, **options):
        for u in DEMO_USERS:
            user, created = User.objects.get_or_create(
                email=u['email'],
                defaults={'name': u['name']},
            )
            user.name = u['name']
            user.set_password(options['password'])
            user.save()

            # Demo todos are rebuilt on every run
            user.todos.all().delete()
            for t in u['todos']:
                Todo.objects.create(user=user, **t)

            if created:
                self.stdout.write(self.style.SUCCESS(f'Created user: {user.email} ({len(u["todos"])} todos)'))
            else:
                self.stdout.write(self.style.WARNING(f'Reset user: {user.email}'))
