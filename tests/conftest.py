from datetime import timedelta
from decimal import Decimal

import pytest
from django.contrib.auth import get_user_model
from django.utils import timezone
from rest_framework.test import APIClient

from contacts.models import Entity
from inventory.models import Category, Product

User = get_user_model()


@pytest.fixture
def user(db):
    user = User.objects.create_user(
        username='assistant@cabinet.dz',
        email='assistant@cabinet.dz',
        password='s3cret-pass',
    )
    user.profile.full_name = 'Amina Benali'
    user.profile.save()
    return user


@pytest.fixture
def admin_user(db):
    user = User.objects.create_user(
        username='admin@cabinet.dz',
        email='admin@cabinet.dz',
        password='s3cret-pass',
        is_staff=True,
    )
    user.profile.role = 'admin'
    user.profile.save()
    return user


@pytest.fixture
def anon_client():
    return APIClient()


@pytest.fixture
def api_client(user):
    client = APIClient()
    client.force_authenticate(user=user)
    return client


@pytest.fixture
def admin_client(admin_user):
    client = APIClient()
    client.force_authenticate(user=admin_user)
    return client


@pytest.fixture
def category(db):
    return Category.objects.create(name='Anesthésiques')


@pytest.fixture
def product(category):
    return Product.objects.create(
        name='Articaïne 4%',
        sku='ART-001',
        category=category,
        price=Decimal('150.00'),
        cost=Decimal('90.00'),
        stock=50,
        min_stock=10,
        expiry_date=timezone.localdate() + timedelta(days=365),
    )


@pytest.fixture
def composite(db):
    return Product.objects.create(
        name='Composite A2',
        sku='COMP-A2',
        price=Decimal('2500.00'),
        cost=Decimal('1800.00'),
        stock=5,
        min_stock=3,
    )


@pytest.fixture
def client_entity(db):
    return Entity.objects.create(name='Karim Haddad', type=Entity.CLIENT, phone='0550 12 34 56')


@pytest.fixture
def supplier(db):
    return Entity.objects.create(name='Dental Supply Alger', type=Entity.SUPPLIER, email='contact@dsa.dz')
