import json
import logging

import requests
from django.conf import settings

logger = logging.getLogger(__name__)

PROMPT = """You are a clinical dental inventory expert working in Algeria. Analyze the stock levels, expiry dates, and transactions for this Dental Practice.
Identify critical shortages for clinical procedures (Composite, Anesthetics, Impression Materials).
Analyze shelf-life risk for items nearing expiry.
All prices and costs are in Algerian Dinars ({currency}).
Suggest restocking based on medical supply chain priorities and waste prevention.

Inventory Data: {products}
Recent Transactions: {invoices}"""

RESPONSE_SCHEMA = {
    'type': 'OBJECT',
    'properties': {
        'restockSuggestions': {
            'type': 'ARRAY',
            'items': {
                'type': 'OBJECT',
                'properties': {
                    'product': {'type': 'STRING'},
                    'reason': {'type': 'STRING'},
                    'priority': {
                        'type': 'STRING',
                        'description': 'Low, Medium, or High (Clinical Criticality)',
                    },
                },
                'required': ['product', 'reason', 'priority'],
            },
        },
        'summary': {'type': 'STRING'},
    },
    'required': ['restockSuggestions', 'summary'],
}


class InsightsService:
    """
    Asks the Gemini generateContent REST API for restocking advice.

    ``get_insights()`` never raises: any configuration, network or
    parsing problem is logged and reported as ``None``.
    """

    def __init__(self, products, invoices, config=None):
        self.products = products
        self.invoices = invoices
        self.config = config or settings.INSIGHTS_CONFIG

    def build_prompt(self):
        products = [
            {
                'name': p.name,
                'stock': p.stock,
                'min': p.min_stock,
                'expiry': p.expiry_date.isoformat() if p.expiry_date else 'N/A',
                'category': p.category.name if p.category else None,
            }
            for p in self.products
        ]
        invoices = [
            {'type': i.type, 'date': i.date.isoformat(), 'total': float(i.total)}
            for i in self.invoices[:self.config['RECENT_INVOICES']]
        ]
        return PROMPT.format(
            currency=settings.DENTASTOCK_CURRENCY,
            products=json.dumps(products, ensure_ascii=False),
            invoices=json.dumps(invoices),
        )

    def build_payload(self):
        return {
            'contents': [{'parts': [{'text': self.build_prompt()}]}],
            'generationConfig': {
                'responseMimeType': 'application/json',
                'responseSchema': RESPONSE_SCHEMA,
            },
        }

    @staticmethod
    def parse_response(data):
        """Pull the JSON answer out of a generateContent response."""
        text = data['candidates'][0]['content']['parts'][0]['text']
        if not text or not text.strip():
            return None
        answer = json.loads(text.strip())
        if not isinstance(answer, dict):
            raise ValueError(f"expected a JSON object, got {type(answer).__name__}")
        return {
            'restock_suggestions': [
                {
                    'product': suggestion['product'],
                    'reason': suggestion['reason'],
                    'priority': suggestion['priority'],
                }
                for suggestion in answer.get('restockSuggestions', [])
            ],
            'summary': answer.get('summary', ''),
        }

    def get_insights(self):
        api_key = self.config.get('API_KEY')
        if not api_key:
            logger.warning("AI Insights skipped: GEMINI_API_KEY is not configured")
            return None

        url = self.config['API_URL'].format(model=self.config['MODEL'])
        try:
            response = requests.post(
                url,
                params={'key': api_key},
                json=self.build_payload(),
                timeout=self.config['TIMEOUT'],
            )
            response.raise_for_status()  # raise HTTPError for bad responses
            return self.parse_response(response.json())

        except requests.RequestException as e:
            # Network or request error
            logger.error(f"AI Insights Error: {e}")
            return None
        except (KeyError, IndexError, TypeError, ValueError) as e:
            logger.error(f"AI Insights Error: unexpected response ({e.__class__.__name__}: {e})")
            return None
