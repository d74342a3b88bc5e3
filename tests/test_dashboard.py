import io
import json
from decimal import Decimal
from unittest import mock

import openpyxl
import pytest
import requests

from cash.models import CashTransaction
from inventory.models import Product
from sales.models import Invoice
from sales.services.invoice_service import post_invoice
from website.services.insights_service import InsightsService

DASHBOARD_URL = '/api/dashboard/'


@pytest.fixture
def activity(product, composite, client_entity, supplier):
    post_invoice(
        invoice_type='sale',
        items=[{'product': product, 'quantity': 4}, {'product': composite, 'quantity': 3}],
        entity=client_entity,
        paid_amount=Decimal('1000.00'),
    )
    post_invoice(
        invoice_type='purchase',
        items=[{'product': product, 'quantity': 10}],
        entity=supplier,
    )
    CashTransaction.objects.create(description='Consultation', amount=Decimal('2000.00'), type='income')


@pytest.fixture
def gemini_settings(settings):
    settings.INSIGHTS_CONFIG = {**settings.INSIGHTS_CONFIG, 'API_KEY': 'test-key'}


def gemini_response(answer):
    response = mock.Mock()
    response.raise_for_status.return_value = None
    response.json.return_value = {
        'candidates': [{'content': {'parts': [{'text': json.dumps(answer)}]}}],
    }
    return response


@pytest.mark.django_db
class TestDashboardMetrics:

    def test_metrics(self, api_client, activity):
        response = api_client.get(DASHBOARD_URL)
        data = response.data

        assert response.status_code == 200
        # 4 x 150 + 3 x 2500
        assert data['total_sales'] == Decimal('8100.00')
        assert data['total_purchases'] == Decimal('900.00')
        # 4 x 90 + 3 x 1800
        assert data['cost_of_goods_sold'] == Decimal('5760.00')
        assert data['profit'] == Decimal('2340.00')
        assert data['receivables'] == Decimal('7100.00')
        assert data['low_stock_count'] == 1
        assert data['total_products'] == 2
        assert data['cash']['balance'] == Decimal('2000.00')
        assert data['currency'] == 'DA'
        assert len(data['sales_series']) == 1
        assert data['sales_series'][0]['amount'] == Decimal('8100.00')

    def test_empty_database(self, api_client):
        data = api_client.get(DASHBOARD_URL).data

        assert data['total_sales'] == Decimal('0.00')
        assert data['profit'] == Decimal('0.00')
        assert data['sales_series'] == []
        assert data['stock_distribution'] == []

    def test_requires_authentication(self, anon_client):
        assert anon_client.get(DASHBOARD_URL).status_code == 401


@pytest.mark.django_db
class TestStockInsights:

    def test_without_api_key(self, api_client, settings, product):
        settings.INSIGHTS_CONFIG = {**settings.INSIGHTS_CONFIG, 'API_KEY': None}

        with mock.patch('website.services.insights_service.requests.post') as post:
            response = api_client.get(f"{DASHBOARD_URL}insights/")

        assert response.status_code == 200
        assert response.data == {'insights': None}
        post.assert_not_called()

    def test_suggestions(self, api_client, gemini_settings, product, activity):
        answer = {
            'restockSuggestions': [{'product': 'Composite A2', 'reason': 'Stock critique', 'priority': 'High'}],
            'summary': 'Réapprovisionner les composites.',
        }

        with mock.patch('website.services.insights_service.requests.post', return_value=gemini_response(answer)) as post:
            response = api_client.get(f"{DASHBOARD_URL}insights/")

        assert response.data['insights'] == {
            'restock_suggestions': [{'product': 'Composite A2', 'reason': 'Stock critique', 'priority': 'High'}],
            'summary': 'Réapprovisionner les composites.',
        }

        _, kwargs = post.call_args
        assert kwargs['params'] == {'key': 'test-key'}
        prompt = kwargs['json']['contents'][0]['parts'][0]['text']
        assert 'Articaïne 4%' in prompt
        assert 'Algerian Dinars (DA)' in prompt
        assert kwargs['json']['generationConfig']['responseMimeType'] == 'application/json'

    def test_network_failure_returns_none(self, api_client, gemini_settings, product):
        with mock.patch('website.services.insights_service.requests.post', side_effect=requests.ConnectionError('down')):
            response = api_client.get(f"{DASHBOARD_URL}insights/")

        assert response.status_code == 200
        assert response.data == {'insights': None}

    def test_malformed_answer_returns_none(self, gemini_settings, product):
        response = mock.Mock()
        response.raise_for_status.return_value = None
        response.json.return_value = {'candidates': []}

        with mock.patch('website.services.insights_service.requests.post', return_value=response):
            assert InsightsService(Product.objects.all(), []).get_insights() is None

    def test_answer_that_is_not_an_object_returns_none(self, gemini_settings, product):
        with mock.patch('website.services.insights_service.requests.post', return_value=gemini_response(['Composite A2'])):
            assert InsightsService(Product.objects.all(), []).get_insights() is None

    def test_only_recent_invoices_are_sent(self, settings, product, client_entity):
        for _ in range(12):
            post_invoice(invoice_type='sale', items=[{'product': product, 'quantity': 1}], entity=client_entity)

        prompt = InsightsService(Product.objects.all(), Invoice.objects.all()).build_prompt()
        invoices = json.loads(prompt.split('Recent Transactions: ', 1)[1])

        assert len(invoices) == settings.INSIGHTS_CONFIG['RECENT_INVOICES']


@pytest.mark.django_db
class TestExports:

    def test_products_workbook(self, api_client, product, composite):
        response = api_client.get(f"{DASHBOARD_URL}export/products/")

        assert response.status_code == 200
        assert response['Content-Type'].startswith('application/vnd.openxmlformats')
        assert 'attachment; filename="products_' in response['Content-Disposition']

        ws = openpyxl.load_workbook(io.BytesIO(response.content)).active
        assert ws.title == 'Products'
        assert ws.cell(row=1, column=1).value == 'SKU'
        assert [ws.cell(row=row, column=1).value for row in (2, 3)] == ['ART-001', 'COMP-A2']

    def test_invoices_workbook(self, api_client, activity):
        response = api_client.get(f"{DASHBOARD_URL}export/invoices/", {'type': 'sale'})

        ws = openpyxl.load_workbook(io.BytesIO(response.content)).active
        assert ws.title == 'Invoices'
        assert ws.cell(row=2, column=1).value == 'INV-0001'
        assert ws.cell(row=2, column=5).value == 8100.0
        assert ws.cell(row=3, column=1).value is None
