import uuid

from django.db import models
from django.db.models import Q


class EntityQuerySet(models.QuerySet):

    def clients(self):
        return self.filter(type=Entity.CLIENT)

    def suppliers(self):
        return self.filter(type=Entity.SUPPLIER)

    def search(self, term):
        return self.filter(
            Q(name__icontains=term) |
            Q(email__icontains=term) |
            Q(phone__icontains=term)
        )


class Entity(models.Model):
    CLIENT = 'client'
    SUPPLIER = 'supplier'
    TYPE_CHOICES = [
        (CLIENT, 'Client'),
        (SUPPLIER, 'Supplier'),
    ]

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    name = models.CharField(max_length=200)
    type = models.CharField(max_length=10, choices=TYPE_CHOICES)
    email = models.EmailField(blank=True)
    phone = models.CharField(max_length=50, blank=True)
    address = models.TextField(blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    objects = EntityQuerySet.as_manager()

    class Meta:
        ordering = ['name']
        verbose_name = 'Entity'
        verbose_name_plural = 'Entities'

    def __str__(self):
        return f"{self.name} ({self.get_type_display()})"

    @property
    def is_in_use(self):
        return self.invoices.exists()
