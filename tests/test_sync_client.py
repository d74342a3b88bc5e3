from unittest import mock

import pytest
import requests

from sync.client import ApiClient, ApiError, OfflineError, SessionExpired


def make_response(status=200, body=None, text=''):
    response = mock.Mock()
    response.status_code = status
    response.ok = status < 400
    response.content = b'' if body is None and not text else b'x'
    response.text = text
    if body is None:
        response.json.side_effect = ValueError('No JSON')
    else:
        response.json.return_value = body
    return response


@pytest.fixture
def session():
    return mock.Mock(spec=requests.Session)


@pytest.fixture
def client(session):
    return ApiClient('http://cabinet.local/api', token='abc123', session=session)


class TestRequest:

    def test_builds_url_and_headers(self, client, session):
        session.request.return_value = make_response(body=[{'id': '1'}])

        assert client.list('products') == [{'id': '1'}]

        args, kwargs = session.request.call_args
        assert args == ('GET', 'http://cabinet.local/api/inventory/products/')
        assert kwargs['headers']['Authorization'] == 'Token abc123'
        assert kwargs['timeout'] == 15

    def test_unwraps_paginated_lists(self, client, session):
        session.request.return_value = make_response(body={'data': [{'id': 'a'}], 'pagination': {'total': 1}})
        assert client.list('invoices') == [{'id': 'a'}]

    def test_page_keeps_pagination(self, client, session):
        body = {'data': [], 'pagination': {'total': 0, 'page': 2, 'limit': 10, 'total_pages': 0}}
        session.request.return_value = make_response(body=body)

        assert client.page('cash', page=2, limit=10) == body
        assert session.request.call_args.kwargs['params'] == {'page': 2, 'limit': 10}

    def test_connection_error_is_offline(self, client, session):
        session.request.side_effect = requests.ConnectionError('refused')
        with pytest.raises(OfflineError):
            client.create('products', {'name': 'X'})

    def test_timeout_is_offline(self, client, session):
        session.request.side_effect = requests.Timeout('slow')
        with pytest.raises(OfflineError):
            client.list('products')

    def test_401_expires_session(self, client, session):
        session.request.return_value = make_response(401, {'detail': 'Invalid token.', 'error': 'Invalid token.'})

        with pytest.raises(SessionExpired) as excinfo:
            client.list('products')

        assert excinfo.value.status == 401
        assert client.token is None

    def test_error_message_from_body(self, client, session):
        session.request.return_value = make_response(409, {'error': 'Articaïne appears on existing invoices'})

        with pytest.raises(ApiError) as excinfo:
            client.delete('products', 'p1')

        assert excinfo.value.status == 409
        assert excinfo.value.message == 'Articaïne appears on existing invoices'
        assert excinfo.value.is_client_error

    def test_error_without_json(self, client, session):
        session.request.return_value = make_response(502, text='Bad Gateway')

        with pytest.raises(ApiError) as excinfo:
            client.list('products')

        assert excinfo.value.is_server_error
        assert excinfo.value.message == 'Bad Gateway'

    def test_no_content(self, client, session):
        session.request.return_value = make_response(204)
        assert client.delete('cash', 't1') is None


class TestEndpoints:

    def test_mutations(self, client, session):
        session.request.return_value = make_response(body={'id': 'i1'})

        client.update('entities', 'e1', {'phone': '021'})
        assert session.request.call_args.args == ('PATCH', 'http://cabinet.local/api/contacts/entities/e1/')

        client.record_payment('i1', 200.0)
        assert session.request.call_args.args == ('POST', 'http://cabinet.local/api/sales/invoices/i1/payments/')
        assert session.request.call_args.kwargs['json'] == {'amount': 200.0}

        client.pos_checkout('e1', [{'product': 'p1', 'quantity': 1}], invoice_id='i9')
        assert session.request.call_args.args == ('POST', 'http://cabinet.local/api/sales/invoices/pos-checkout/')
        assert session.request.call_args.kwargs['json']['id'] == 'i9'


class TestAuth:

    def test_login_stores_token(self, session):
        client = ApiClient('http://cabinet.local/api/', session=session)
        session.request.return_value = make_response(body={'user': {'email': 'a@b.dz'}, 'token': 'tok'})

        assert client.login('a@b.dz', 'pw') == {'email': 'a@b.dz'}
        assert client.token == 'tok'
        assert session.request.call_args.args == ('POST', 'http://cabinet.local/api/auth/')

    def test_session_user(self, client, session):
        session.request.return_value = make_response(body={'user': None})
        assert client.session_user() is None

    def test_logout_clears_token_even_offline(self, client, session):
        session.request.side_effect = requests.ConnectionError('down')

        with pytest.raises(OfflineError):
            client.logout()
        assert client.token is None
