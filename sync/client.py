# sync/client.py
import logging

import requests

logger = logging.getLogger(__name__)

# Collection endpoints, relative to the API root
RESOURCES = {
    'categories': 'inventory/categories/',
    'products': 'inventory/products/',
    'entities': 'contacts/entities/',
    'invoices': 'sales/invoices/',
    'cash': 'cash/transactions/',
}

AUTH_ENDPOINT = 'auth/'


# ============================================
# ERRORS
# ============================================

class OfflineError(Exception):
    """The server could not be reached at all."""


class ApiError(Exception):
    """The server answered with a non-2xx status."""

    def __init__(self, status, message):
        super().__init__(message)
        self.status = status
        self.message = message

    @property
    def is_client_error(self):
        return 400 <= self.status < 500

    @property
    def is_server_error(self):
        return self.status >= 500

    def __str__(self):
        return f"{self.status}: {self.message}"


class SessionExpired(ApiError):
    def __init__(self, message='Session expired'):
        super().__init__(401, message)


def _error_message(response):
    try:
        body = response.json()
    except ValueError:
        return response.text or f"HTTP error! status: {response.status_code}"
    if isinstance(body, dict):
        return body.get('error') or body.get('detail') or f"HTTP error! status: {response.status_code}"
    return f"HTTP error! status: {response.status_code}"


# ============================================
# CLIENT
# ============================================

class ApiClient:
    """
    Thin JSON client for the DentaStock API.

    Every call either returns the decoded body or raises one of
    ``OfflineError``, ``SessionExpired`` or ``ApiError``.
    """

    def __init__(self, base_url, token=None, timeout=15, session=None):
        self.base_url = base_url.rstrip('/') + '/'
        self.token = token
        self.timeout = timeout
        self.session = session or requests.Session()

    @staticmethod
    def endpoint(resource, pk=None, action=None):
        path = RESOURCES[resource]
        if pk is not None:
            path += f"{pk}/"
        if action:
            path += f"{action}/"
        return path

    def headers(self):
        headers = {'Content-Type': 'application/json', 'Accept': 'application/json'}
        if self.token:
            headers['Authorization'] = f"Token {self.token}"
        return headers

    def request(self, method, endpoint, payload=None, params=None):
        url = self.base_url + endpoint.lstrip('/')
        try:
            response = self.session.request(
                method,
                url,
                json=payload,
                params=params,
                headers=self.headers(),
                timeout=self.timeout,
            )
        except (requests.ConnectionError, requests.Timeout) as e:
            logger.warning(f"[SYNC] {method} {endpoint} unreachable: {e}")
            raise OfflineError(str(e)) from e

        if response.status_code == 401:
            self.token = None
            raise SessionExpired(_error_message(response))

        if not response.ok:
            message = _error_message(response)
            logger.warning(f"[SYNC] {method} {endpoint} failed ({response.status_code}): {message}")
            raise ApiError(response.status_code, message)

        if response.status_code == 204 or not response.content:
            return None
        return response.json()

    # ---- auth ----

    def login(self, email, password):
        body = self.request('POST', AUTH_ENDPOINT, {'email': email, 'password': password})
        self.token = body.get('token')
        return body['user']

    def session_user(self):
        """Current user, or None when not logged in."""
        return self.request('GET', AUTH_ENDPOINT).get('user')

    def logout(self):
        try:
            self.request('DELETE', AUTH_ENDPOINT)
        finally:
            self.token = None

    # ---- resources ----

    def list(self, resource, **params):
        """All rows of a resource; paginated endpoints are unwrapped."""
        body = self.request('GET', self.endpoint(resource), params=params or None)
        if isinstance(body, dict) and 'data' in body:
            return body['data']
        return body

    def page(self, resource, page=1, limit=20, **params):
        """One page of a paginated resource as ``{data, pagination}``."""
        return self.request('GET', self.endpoint(resource), params=dict(params, page=page, limit=limit))

    def get(self, resource, pk):
        return self.request('GET', self.endpoint(resource, pk))

    def create(self, resource, payload):
        return self.request('POST', self.endpoint(resource), payload)

    def update(self, resource, pk, payload):
        return self.request('PATCH', self.endpoint(resource, pk), payload)

    def delete(self, resource, pk):
        return self.request('DELETE', self.endpoint(resource, pk))

    # ---- invoices ----

    def record_payment(self, invoice_id, amount):
        return self.request('POST', self.endpoint('invoices', invoice_id, 'payments'), {'amount': amount})

    def pos_checkout(self, entity_id, cart, invoice_id=None):
        payload = {'entity': entity_id, 'cart': cart}
        if invoice_id:
            payload['id'] = invoice_id
        return self.request('POST', self.endpoint('invoices', action='pos-checkout'), payload)
