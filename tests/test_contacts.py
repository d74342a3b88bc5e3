import pytest

from contacts.models import Entity
from sales.services.invoice_service import post_invoice

ENTITIES_URL = '/api/contacts/entities/'


@pytest.mark.django_db
class TestEntityApi:

    def test_create(self, api_client):
        response = api_client.post(ENTITIES_URL, {
            'name': 'Dr. Yacine Meziane',
            'type': 'client',
            'email': 'y.meziane@mail.dz',
        }, format='json')

        assert response.status_code == 201
        assert response.data['type_display'] == 'Client'
        assert response.data['invoice_count'] == 0

    def test_name_required(self, api_client):
        response = api_client.post(ENTITIES_URL, {'name': '  ', 'type': 'client'}, format='json')
        assert response.status_code == 400

    def test_filter_by_type(self, api_client, client_entity, supplier):
        response = api_client.get(ENTITIES_URL, {'type': 'supplier'})
        assert [row['id'] for row in response.data] == [str(supplier.pk)]

        response = api_client.get(ENTITIES_URL, {'type': 'all'})
        assert len(response.data) == 2

    def test_search_name_email_phone(self, api_client, client_entity, supplier):
        assert [r['name'] for r in api_client.get(ENTITIES_URL, {'search': 'haddad'}).data] == ['Karim Haddad']
        assert [r['name'] for r in api_client.get(ENTITIES_URL, {'search': 'dsa.dz'}).data] == ['Dental Supply Alger']
        assert [r['name'] for r in api_client.get(ENTITIES_URL, {'search': '0550'}).data] == ['Karim Haddad']

    def test_delete_unused(self, api_client, client_entity):
        response = api_client.delete(f"{ENTITIES_URL}{client_entity.pk}/")

        assert response.status_code == 204
        assert not Entity.objects.exists()

    def test_delete_with_invoices_is_refused(self, api_client, client_entity, product):
        post_invoice(invoice_type='sale', items=[{'product': product, 'quantity': 1}], entity=client_entity)

        response = api_client.delete(f"{ENTITIES_URL}{client_entity.pk}/")

        assert response.status_code == 409
        assert Entity.objects.filter(pk=client_entity.pk).exists()

    def test_type_locked_once_invoiced(self, api_client, client_entity, product):
        post_invoice(invoice_type='sale', items=[{'product': product, 'quantity': 1}], entity=client_entity)

        response = api_client.patch(f"{ENTITIES_URL}{client_entity.pk}/", {'type': 'supplier'}, format='json')

        assert response.status_code == 400
        client_entity.refresh_from_db()
        assert client_entity.type == Entity.CLIENT
