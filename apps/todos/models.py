from django.conf import settings
from django.db import models


class TodoPriority(models.IntegerChoices):
    LOW = 1, 'Low'
    MEDIUM = 2, 'Medium'
    HIGH = 3, 'High'


class Todo(models.Model):
    """
    A personal to-do item. Only its owner can see or change it.
    """
    id = models.BigAutoField(primary_key=True)
    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name='todos',
    )

    title = models.CharField(max_length=255)
    description = models.TextField(null=True, blank=True)
    completed = models.BooleanField(default=False, db_index=True)
    priority = models.PositiveSmallIntegerField(
        choices=TodoPriority.choices,
        default=TodoPriority.LOW,
    )
    due_date = models.DateTimeField(null=True, blank=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['-created_at', '-id']
        constraints = [
            models.CheckConstraint(
                condition=models.Q(priority__gte=1, priority__lte=3),
                name='todo_priority_between_1_and_3',
            ),
        ]

    def __str__(self):
        return self.title
